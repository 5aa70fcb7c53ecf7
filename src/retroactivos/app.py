from __future__ import annotations

import logging
from pathlib import Path
from zipfile import BadZipFile

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates
from openpyxl.utils.exceptions import InvalidFileException

from .batch import REQUIRED_COLUMNS, BatchError, BatchResult, process_batch
from .calculations import AdjustmentInput, calculate
from .config import settings
from .periods import PayrollCycle, segment
from .schemas import CalculationOut, PeriodOut, PeriodsIn, PeriodsOut, RecordIn
from .spreadsheet import build_report, build_template, read_rows

logging.basicConfig(
    level=settings.log_level,
    format="%(levelname)s:%(name)s:%(message)s",
)
logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

NO_RESULT_MESSAGE = (
    "No se generaron resultados. Verifique que las fechas cubran periodos cerrados completos."
)
NO_BATCH_RESULT_MESSAGE = (
    "El archivo se procesó pero no se generaron resultados. Verifique que las fechas "
    "tengan el formato correcto (AAAA-MM-DD o DD/MM/AAAA) y cubran periodos válidos."
)

app = FastAPI(title=settings.app_name, debug=settings.debug)
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def run_upload(file: UploadFile, cycle: PayrollCycle) -> BatchResult:
    content = file.file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file uploaded")

    try:
        rows = read_rows(content)
    except (BadZipFile, InvalidFileException) as exc:
        logger.warning("Unreadable workbook %r: %s", file.filename, exc)
        raise HTTPException(status_code=400, detail="Error al procesar el archivo.") from exc

    try:
        return process_batch(
            rows,
            cycle,
            max_rows=settings.max_batch_rows,
            workers=settings.batch_workers,
        )
    except BatchError as exc:
        logger.info("Rejected batch %r: %s", file.filename, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/api/periods", response_model=PeriodsOut)
def periods_api(payload: PeriodsIn):
    periods = segment(payload.start_date, payload.end_date, payload.cycle)
    return PeriodsOut(periods=[PeriodOut.from_period(p) for p in periods])


@app.post("/api/calculate", response_model=CalculationOut)
def calculate_api(payload: RecordIn):
    adjustment = calculate(AdjustmentInput.from_record(payload.as_record()), payload.cycle)
    message = NO_RESULT_MESSAGE if not adjustment.details else None
    return CalculationOut.from_adjustment(adjustment, message=message)


@app.post("/api/batch", response_model=CalculationOut)
def batch_api(
    file: UploadFile = File(...),
    cycle: PayrollCycle = Form(settings.default_cycle),
):
    result = run_upload(file, cycle)
    return CalculationOut.build(
        result.details,
        result.summaries,
        message=NO_BATCH_RESULT_MESSAGE if result.is_empty else None,
        rows_without_result=result.rows_without_result,
    )


@app.post("/api/batch/report")
def batch_report(
    file: UploadFile = File(...),
    cycle: PayrollCycle = Form(settings.default_cycle),
):
    result = run_upload(file, cycle)
    if not result.summaries:
        raise HTTPException(status_code=400, detail=NO_BATCH_RESULT_MESSAGE)
    return xlsx_response(build_report(result.summaries), "reporte_retroactivos.xlsx")


@app.get("/api/template")
def template_download():
    return xlsx_response(build_template(), "template_retroactivos.xlsx")


# ---------------------------------------------------------------------------
# Individual simulation form
# ---------------------------------------------------------------------------

def render_form(request: Request, **context):
    defaults = {
        "title": settings.app_name,
        "cycles": list(PayrollCycle),
        "cycle": settings.default_cycle.value,
        "form": {},
        "field_errors": [],
        "error": None,
        "result": None,
    }
    defaults.update(context)
    return templates.TemplateResponse(request, "index.html", defaults)


@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    return render_form(request)


@app.post("/calculate", response_class=HTMLResponse)
def calculate_form(
    request: Request,
    cycle: PayrollCycle = Form(settings.default_cycle),
    SUELDO_ANTERIOR: str = Form(""),
    SUELDO_NUEVO: str = Form(""),
    FECHA_INICIO: str = Form(""),
    FECHA_FIN: str = Form(""),
    HED_CANTIDAD: str = Form(""),
    HEN_CANTIDAD: str = Form(""),
    HEFD_CANTIDAD: str = Form(""),
    HEFN_CANTIDAD: str = Form(""),
    RN_CANTIDAD: str = Form(""),
):
    form = {
        "SUELDO_ANTERIOR": SUELDO_ANTERIOR,
        "SUELDO_NUEVO": SUELDO_NUEVO,
        "FECHA_INICIO": FECHA_INICIO,
        "FECHA_FIN": FECHA_FIN,
        "HED_CANTIDAD": HED_CANTIDAD,
        "HEN_CANTIDAD": HEN_CANTIDAD,
        "HEFD_CANTIDAD": HEFD_CANTIDAD,
        "HEFN_CANTIDAD": HEFN_CANTIDAD,
        "RN_CANTIDAD": RN_CANTIDAD,
    }
    field_errors = [column for column in REQUIRED_COLUMNS if not form[column].strip()]
    if field_errors:
        return render_form(request, cycle=cycle.value, form=form, field_errors=field_errors)

    record = RecordIn(**form, cycle=cycle)
    adjustment = calculate(AdjustmentInput.from_record(record.as_record()), cycle)
    if not adjustment.details:
        return render_form(request, cycle=cycle.value, form=form, error=NO_RESULT_MESSAGE)

    return render_form(
        request,
        cycle=cycle.value,
        form=form,
        result=CalculationOut.from_adjustment(adjustment),
    )
