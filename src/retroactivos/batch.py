"""
Bulk processing of imported rows.

Rows are plain mappings keyed by the template columns. The checks here run
before any calculation; the calculation itself never fails on bad values.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .calculations import Adjustment, AdjustmentInput, DetailLine, SummaryRow, calculate
from .periods import PayrollCycle

logger = logging.getLogger(__name__)

INPUT_COLUMNS = (
    "CEDULA",
    "NOMBRE",
    "CODIGO_FICHA_COLABORADOR",
    "SUELDO_ANTERIOR",
    "SUELDO_NUEVO",
    "FECHA_INICIO",
    "FECHA_FIN",
    "HED_CANTIDAD",
    "HEN_CANTIDAD",
    "HEFD_CANTIDAD",
    "HEFN_CANTIDAD",
)
REQUIRED_COLUMNS = ("FECHA_INICIO", "FECHA_FIN", "SUELDO_ANTERIOR", "SUELDO_NUEVO")

DEFAULT_MAX_ROWS = 10_000

Row = Mapping[str, Any]


class BatchError(ValueError):
    """A batch was rejected before calculation."""


class EmptyBatchError(BatchError):
    def __init__(self) -> None:
        super().__init__("El archivo parece estar vacío o no se pudieron leer datos.")


class BatchTooLargeError(BatchError):
    def __init__(self, rows: int, max_rows: int) -> None:
        self.rows = rows
        self.max_rows = max_rows
        super().__init__(f"El archivo excede el límite de {max_rows:,} filas.".replace(",", "."))


class MissingColumnsError(BatchError):
    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Faltan columnas requeridas en el archivo: "
            f"{', '.join(self.missing)}. Por favor use la plantilla."
        )


@dataclass
class BatchResult:
    details: list[DetailLine] = field(default_factory=list)
    summaries: list[SummaryRow] = field(default_factory=list)
    rows_without_result: list[int] = field(default_factory=list)  # 1-based

    @property
    def is_empty(self) -> bool:
        return not self.details


def validate_batch(rows: Sequence[Row], max_rows: int = DEFAULT_MAX_ROWS) -> None:
    if not rows:
        raise EmptyBatchError()
    if len(rows) > max_rows:
        raise BatchTooLargeError(len(rows), max_rows)

    missing = [column for column in REQUIRED_COLUMNS if column not in rows[0]]
    if missing:
        raise MissingColumnsError(missing)


def calculate_row(row: Row, cycle: PayrollCycle) -> Adjustment:
    return calculate(AdjustmentInput.from_record(row), cycle)


def process_batch(
    rows: Sequence[Row],
    cycle: PayrollCycle,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    workers: int = 1,
) -> BatchResult:
    """
    Validate and calculate every row.

    Rows are independent, so with workers > 1 they are spread over a thread
    pool; results are still concatenated in source-row order.
    """
    validate_batch(rows, max_rows)
    cycle = PayrollCycle(cycle)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            adjustments = list(executor.map(lambda row: calculate_row(row, cycle), rows))
    else:
        adjustments = [calculate_row(row, cycle) for row in rows]

    result = BatchResult()
    for number, adjustment in enumerate(adjustments, start=1):
        if adjustment.is_empty:
            result.rows_without_result.append(number)
            continue
        result.details.extend(adjustment.details)
        result.summaries.extend(adjustment.summaries)

    logger.info(
        "Processed %d row(s) (%s): %d detail line(s), %d summary row(s), %d row(s) without result",
        len(rows),
        cycle.value,
        len(result.details),
        len(result.summaries),
        len(result.rows_without_result),
    )
    return result
