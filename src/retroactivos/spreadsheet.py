"""
XLSX import/export for bulk retroactive calculations.

Reads the input template into plain row mappings and writes the payroll
import report. Header names on the report side are the payroll system's
import contract and must not change.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from pathlib import Path
from typing import IO, Any, Iterable

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font

from .batch import INPUT_COLUMNS
from .calculations import DetailLine, SummaryRow

TEMPLATE_SHEET = "Template"
REPORT_SHEET = "Reporte"
DETAIL_SHEET = "Detalle"

SUMMARY_HEADERS = {
    "period": "Comprobante - Período",
    "name": "Colaborador - Nombre Completo",
    "identifier": "Colaborador - Número de Documento",
    "secondary_identifier": "Colaborador - Código de Ficha",
    "salary": "Devengos Prestacionales - Salario",
    "holiday_day_overtime_amount": "Devengos Prestacionales - Hora Extra Diurna Dominical Y Festivos (2.05)",
    "holiday_day_overtime_quantity": "Comprobante - Hora Extra Diurna Dominical y Festivos (2.05)",
    "day_overtime_amount": "Devengos Prestacionales - Hora Extra Diurna Ordinaria (1.25)",
    "day_overtime_quantity": "Comprobante - Hora Extra Diurna Ordinaria (1.25)",
    "night_overtime_amount": "Devengos Prestacionales - Hora Extra Nocturna (1.75)",
    "night_overtime_quantity": "Comprobante - Hora Extra Nocturna (1.75)",
    "holiday_night_overtime_amount": "Devengos Prestacionales - Hora Extra Nocturna Dominical Y Festivos (2.55)",
    "holiday_night_overtime_quantity": "Comprobante - Hora Extra Nocturna Dominical Y Festivos (2.55)",
}

DETAIL_HEADERS = {
    "identifier": "CEDULA",
    "name": "NOMBRE",
    "concept": "CONCEPTO",
    "detail": "DETALLE",
    "amount": "VALOR_A_PAGAR",
}

Source = str | Path | bytes | IO[bytes]


def _cell_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def _export_value(value: Any) -> Any:
    # openpyxl has no Decimal cell type
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def read_rows(source: Source) -> list[dict[str, Any]]:
    """
    Rows of the first worksheet as dicts keyed by the header row.

    Blank rows are skipped and date cells come back as YYYY-MM-DD strings.
    """
    if isinstance(source, bytes):
        source = BytesIO(source)

    wb = load_workbook(source, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        columns = [str(name).strip() if name is not None else "" for name in header]

        records = []
        for values in rows:
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
                continue
            records.append(
                {
                    column: _cell_value(value)
                    for column, value in zip(columns, values)
                    if column
                }
            )
        return records
    finally:
        wb.close()


def _to_bytes(wb: Workbook) -> bytes:
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def _write_sheet(title: str, headers: Iterable[str], rows: Iterable[list[Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title

    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for row in rows:
        ws.append([_export_value(value) for value in row])
    return _to_bytes(wb)


def build_template() -> bytes:
    return _write_sheet(TEMPLATE_SHEET, INPUT_COLUMNS, [])


def build_report(summaries: Iterable[SummaryRow]) -> bytes:
    return _write_sheet(
        REPORT_SHEET,
        SUMMARY_HEADERS.values(),
        ([getattr(row, name) for name in SUMMARY_HEADERS] for row in summaries),
    )


def build_detail_report(details: Iterable[DetailLine]) -> bytes:
    return _write_sheet(
        DETAIL_SHEET,
        DETAIL_HEADERS.values(),
        ([getattr(line, name) for name in DETAIL_HEADERS] for line in details),
    )
