from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any, Mapping

from .periods import PayrollCycle, format_period_date, segment

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Business constants
# ---------------------------------------------------------------------------

# Monthly hours used to derive an hourly rate from a monthly salary.
MONTHLY_HOURS_DIVISOR = Decimal("240")

# Share of the monthly salary difference paid in each period.
CYCLE_FACTORS = {
    PayrollCycle.MONTHLY: Decimal("1"),
    PayrollCycle.SEMI_MONTHLY: Decimal("0.5"),
}

OVERTIME_FACTORS = {
    "HED": Decimal("1.25"),
    "HEN": Decimal("1.75"),
    "HEFD": Decimal("2.05"),
    "HEFN": Decimal("2.55"),
}

# Overtime differential is attributed to this period of the range only.
OVERTIME_PERIOD_INDEX = 0

# Night surcharge (RN). Not applied by the period-aware calculation.
NIGHT_SURCHARGE_FACTOR = Decimal("0.35")

# Salaries and hour counts at or above this are treated as unusable input.
MAX_INPUT_MAGNITUDE = Decimal("1e15")

# Enough digits to quantize any product of in-range inputs.
ROUNDING_PRECISION = 40

SALARY_CONCEPT = "Retroactivo sueldo"

ZERO = Decimal("0")


class OvertimeCategory(str, Enum):
    DAY = "HED"
    NIGHT = "HEN"
    HOLIDAY_DAY = "HEFD"
    HOLIDAY_NIGHT = "HEFN"

    @property
    def factor(self) -> Decimal:
        return OVERTIME_FACTORS[self.value]

    @property
    def label(self) -> str:
        return _OVERTIME_LABELS[self]

    @property
    def column(self) -> str:
        return f"{self.value}_CANTIDAD"


_OVERTIME_LABELS = {
    OvertimeCategory.DAY: "Retroactivo HE diurna",
    OvertimeCategory.NIGHT: "Retroactivo HE nocturna",
    OvertimeCategory.HOLIDAY_DAY: "Retroactivo HE festiva diurna",
    OvertimeCategory.HOLIDAY_NIGHT: "Retroactivo HE festiva nocturna",
}


# ---------------------------------------------------------------------------
# Permissive numeric input
# ---------------------------------------------------------------------------

def parse_or_default(value: Any, default: Decimal = ZERO) -> Decimal:
    """
    Read a numeric field, falling back to `default` for anything unusable.

    Blank cells, None, booleans, non-numeric text, NaN, infinities and
    magnitudes of MAX_INPUT_MAGNITUDE or more all yield the default. Floats
    go through their shortest repr so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return default
        parsed = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return default
    else:
        return default

    if not parsed.is_finite() or abs(parsed) >= MAX_INPUT_MAGNITUDE:
        return default
    return parsed


def round_currency(amount: Decimal) -> int:
    """Round half away from zero to whole currency units."""
    with localcontext() as ctx:
        ctx.prec = ROUNDING_PRECISION
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_quantity(quantity: Decimal) -> str:
    return format(quantity.normalize(), "f")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AdjustmentInput:
    identifier: str
    name: str
    previous_salary: Decimal
    new_salary: Decimal
    start_date: Any
    end_date: Any
    overtime_quantities: Mapping[OvertimeCategory, Decimal] = field(default_factory=dict)
    secondary_identifier: str = ""
    night_surcharge_quantity: Decimal = ZERO

    def quantity(self, category: OvertimeCategory) -> Decimal:
        return self.overtime_quantities.get(category, ZERO)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AdjustmentInput":
        """
        Build an input from a tabular record keyed by the import columns
        (CEDULA, NOMBRE, SUELDO_ANTERIOR, HED_CANTIDAD, ...).
        """
        return cls(
            identifier=_text(record.get("CEDULA")),
            name=_text(record.get("NOMBRE")),
            previous_salary=parse_or_default(record.get("SUELDO_ANTERIOR")),
            new_salary=parse_or_default(record.get("SUELDO_NUEVO")),
            start_date=record.get("FECHA_INICIO"),
            end_date=record.get("FECHA_FIN"),
            overtime_quantities={
                category: parse_or_default(record.get(category.column))
                for category in OvertimeCategory
            },
            secondary_identifier=_text(record.get("CODIGO_FICHA_COLABORADOR")),
            night_surcharge_quantity=parse_or_default(record.get("RN_CANTIDAD")),
        )


@dataclass(frozen=True)
class DetailLine:
    identifier: str
    name: str
    concept: str
    detail: str
    amount: int


@dataclass(frozen=True)
class SummaryRow:
    identifier: str
    name: str
    secondary_identifier: str
    period: str
    salary: int = 0
    day_overtime_amount: int = 0
    day_overtime_quantity: Decimal = ZERO
    night_overtime_amount: int = 0
    night_overtime_quantity: Decimal = ZERO
    holiday_day_overtime_amount: int = 0
    holiday_day_overtime_quantity: Decimal = ZERO
    holiday_night_overtime_amount: int = 0
    holiday_night_overtime_quantity: Decimal = ZERO


# SummaryRow field prefix per category: <prefix>_amount / <prefix>_quantity
SUMMARY_FIELD_PREFIXES = {
    OvertimeCategory.DAY: "day_overtime",
    OvertimeCategory.NIGHT: "night_overtime",
    OvertimeCategory.HOLIDAY_DAY: "holiday_day_overtime",
    OvertimeCategory.HOLIDAY_NIGHT: "holiday_night_overtime",
}


@dataclass(frozen=True)
class Adjustment:
    details: list[DetailLine] = field(default_factory=list)
    summaries: list[SummaryRow] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.summaries


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------

def salary_per_period(salary_delta: Decimal, cycle: PayrollCycle) -> Decimal:
    return salary_delta * CYCLE_FACTORS[PayrollCycle(cycle)]


def hourly_delta(salary_delta: Decimal) -> Decimal:
    return salary_delta / MONTHLY_HOURS_DIVISOR


def overtime_amounts(data: AdjustmentInput, salary_delta: Decimal) -> list[tuple[OvertimeCategory, Decimal, int]]:
    """
    Rounded overtime differential for every category with hours worked.

    Only positive differentials are returned, as (category, quantity, amount).
    """
    per_hour = hourly_delta(salary_delta)
    amounts = []
    for category in OvertimeCategory:
        quantity = data.quantity(category)
        if quantity <= 0:
            continue
        value = per_hour * category.factor * quantity
        if value > 0:
            amounts.append((category, quantity, round_currency(value)))
    return amounts


def calculate(data: AdjustmentInput, cycle: PayrollCycle) -> Adjustment:
    """
    Retroactive adjustment for one employee record.

    The salary difference is paid once per closed period in the range. The
    overtime differential is computed once for the whole range and attached
    to the first period only. A range with no closed period yields an empty
    result.
    """
    cycle = PayrollCycle(cycle)
    periods = segment(data.start_date, data.end_date, cycle)
    if not periods:
        logger.debug("No closed period for record %r", data.identifier)
        return Adjustment()

    if data.night_surcharge_quantity > 0:
        logger.warning(
            "Ignoring %s night surcharge hours for record %r",
            format_quantity(data.night_surcharge_quantity),
            data.identifier,
        )

    salary_delta = data.new_salary - data.previous_salary
    salary_amount = round_currency(salary_per_period(salary_delta, cycle))
    overtime = overtime_amounts(data, salary_delta)

    details: list[DetailLine] = []
    summaries: list[SummaryRow] = []
    for index, period in enumerate(periods):
        values: dict[str, Any] = {}
        formatted_start = format_period_date(period.start)

        if salary_amount > 0:
            values["salary"] = salary_amount
            details.append(
                DetailLine(
                    identifier=data.identifier,
                    name=data.name,
                    concept=SALARY_CONCEPT,
                    detail=formatted_start,
                    amount=salary_amount,
                )
            )

        if index == OVERTIME_PERIOD_INDEX:
            for category, quantity, amount in overtime:
                prefix = SUMMARY_FIELD_PREFIXES[category]
                values[f"{prefix}_amount"] = amount
                values[f"{prefix}_quantity"] = quantity
                details.append(
                    DetailLine(
                        identifier=data.identifier,
                        name=data.name,
                        concept=category.label,
                        detail=f"{format_quantity(quantity)} horas",
                        amount=amount,
                    )
                )

        summaries.append(
            SummaryRow(
                identifier=data.identifier,
                name=data.name,
                secondary_identifier=data.secondary_identifier,
                period=formatted_start,
                **values,
            )
        )

    return Adjustment(details=details, summaries=summaries)

