from io import BytesIO

from compute_retroactivos import main
from openpyxl import Workbook, load_workbook
from retroactivos.batch import INPUT_COLUMNS


def write_input(path, rows):
    wb = Workbook()
    ws = wb.active
    ws.append(list(INPUT_COLUMNS))
    for values in rows:
        ws.append([values.get(column) for column in INPUT_COLUMNS])
    wb.save(path)


def test_writes_report_and_details(tmp_path):
    source = tmp_path / "input.xlsx"
    write_input(
        source,
        [
            {
                "CEDULA": "1",
                "NOMBRE": "Ana",
                "SUELDO_ANTERIOR": 1000000,
                "SUELDO_NUEVO": 1100000,
                "FECHA_INICIO": "2024-01-01",
                "FECHA_FIN": "2024-01-31",
                "HEN_CANTIDAD": 4,
            }
        ],
    )
    report = tmp_path / "report.xlsx"
    details = tmp_path / "details.xlsx"

    code = main([str(source), "--output", str(report), "--details", str(details)])

    assert code == 0
    summary = load_workbook(BytesIO(report.read_bytes())).active
    assert summary.max_row == 2
    lines = load_workbook(BytesIO(details.read_bytes())).active
    assert [row[2] for row in lines.iter_rows(min_row=2, values_only=True)] == [
        "Retroactivo sueldo",
        "Retroactivo HE nocturna",
    ]


def test_exits_with_error_on_missing_columns(tmp_path, capsys):
    source = tmp_path / "input.xlsx"
    wb = Workbook()
    wb.active.append(["CEDULA"])
    wb.active.append(["1"])
    wb.save(source)

    code = main([str(source), "--output", str(tmp_path / "out.xlsx")])

    assert code == 1
    assert "Faltan columnas requeridas" in capsys.readouterr().err
    assert not (tmp_path / "out.xlsx").exists()


def test_exits_with_error_on_unreadable_workbook(tmp_path, capsys):
    source = tmp_path / "rows.xlsx"
    source.write_text("CEDULA,SUELDO_ANTERIOR\n1,1000000\n", encoding="utf-8")

    code = main([str(source), "--output", str(tmp_path / "out.xlsx")])

    assert code == 1
    assert "cannot read" in capsys.readouterr().err
    assert not (tmp_path / "out.xlsx").exists()


def test_exits_with_error_on_missing_input(tmp_path, capsys):
    code = main([str(tmp_path / "missing.xlsx"), "--output", str(tmp_path / "out.xlsx")])

    assert code == 1
    assert "cannot read" in capsys.readouterr().err


def test_exits_with_error_when_nothing_payable(tmp_path):
    source = tmp_path / "input.xlsx"
    write_input(
        source,
        [
            {
                "CEDULA": "1",
                "SUELDO_ANTERIOR": 1000000,
                "SUELDO_NUEVO": 1100000,
                "FECHA_INICIO": "2024-02-05",
                "FECHA_FIN": "2024-02-20",
            }
        ],
    )
    assert main([str(source), "--output", str(tmp_path / "out.xlsx"), "--cycle", "mensual"]) == 1
