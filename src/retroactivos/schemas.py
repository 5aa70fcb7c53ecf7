from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from .calculations import Adjustment, DetailLine, SummaryRow
from .periods import PayrollCycle, Period

# Numeric record fields are passed through untouched; the calculator reads
# them permissively.
Cell = str | float | int | None


class PeriodsIn(BaseModel):
    start_date: str | None = None
    end_date: str | None = None
    cycle: PayrollCycle = PayrollCycle.MONTHLY


class PeriodOut(BaseModel):
    start: date
    end: date

    @classmethod
    def from_period(cls, period: Period) -> "PeriodOut":
        return cls(start=period.start, end=period.end)


class PeriodsOut(BaseModel):
    periods: list[PeriodOut]


class RecordIn(BaseModel):
    """One employee record, keyed by the import template columns."""

    CEDULA: str = "-"
    NOMBRE: str = "Simulación"
    CODIGO_FICHA_COLABORADOR: str = "-"
    SUELDO_ANTERIOR: Cell = None
    SUELDO_NUEVO: Cell = None
    FECHA_INICIO: str | None = None
    FECHA_FIN: str | None = None
    HED_CANTIDAD: Cell = None
    HEN_CANTIDAD: Cell = None
    HEFD_CANTIDAD: Cell = None
    HEFN_CANTIDAD: Cell = None
    # Night surcharge hours, accepted but not paid
    RN_CANTIDAD: Cell = None

    cycle: PayrollCycle = PayrollCycle.MONTHLY

    def as_record(self) -> dict[str, Any]:
        return self.model_dump(exclude={"cycle"})


class DetailLineOut(BaseModel):
    CEDULA: str
    NOMBRE: str
    CONCEPTO: str
    DETALLE: str
    VALOR_A_PAGAR: int

    @classmethod
    def from_line(cls, line: DetailLine) -> "DetailLineOut":
        return cls(
            CEDULA=line.identifier,
            NOMBRE=line.name,
            CONCEPTO=line.concept,
            DETALLE=line.detail,
            VALOR_A_PAGAR=line.amount,
        )


class SummaryRowOut(BaseModel):
    identifier: str
    name: str
    secondary_identifier: str
    period: str
    salary: int = 0
    day_overtime_amount: int = 0
    day_overtime_quantity: Decimal = Field(default=Decimal("0"))
    night_overtime_amount: int = 0
    night_overtime_quantity: Decimal = Field(default=Decimal("0"))
    holiday_day_overtime_amount: int = 0
    holiday_day_overtime_quantity: Decimal = Field(default=Decimal("0"))
    holiday_night_overtime_amount: int = 0
    holiday_night_overtime_quantity: Decimal = Field(default=Decimal("0"))

    @classmethod
    def from_row(cls, row: SummaryRow) -> "SummaryRowOut":
        return cls.model_validate(row, from_attributes=True)


class CalculationOut(BaseModel):
    empty: bool
    message: str | None = None
    details: list[DetailLineOut] = []
    summaries: list[SummaryRowOut] = []
    rows_without_result: list[int] = []

    @classmethod
    def build(
        cls,
        details: list[DetailLine],
        summaries: list[SummaryRow],
        *,
        message: str | None = None,
        rows_without_result: list[int] | None = None,
    ) -> "CalculationOut":
        return cls(
            empty=not details,
            message=message,
            details=[DetailLineOut.from_line(line) for line in details],
            summaries=[SummaryRowOut.from_row(row) for row in summaries],
            rows_without_result=rows_without_result or [],
        )

    @classmethod
    def from_adjustment(cls, adjustment: Adjustment, *, message: str | None = None) -> "CalculationOut":
        return cls.build(adjustment.details, adjustment.summaries, message=message)
