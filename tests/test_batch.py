import pytest
from retroactivos.batch import (INPUT_COLUMNS, REQUIRED_COLUMNS,
                                BatchTooLargeError, EmptyBatchError,
                                MissingColumnsError, process_batch,
                                validate_batch)
from retroactivos.periods import PayrollCycle


def row(cedula, start="2024-01-01", end="2024-01-31", **extra):
    values = {column: None for column in INPUT_COLUMNS}
    values.update(
        {
            "CEDULA": cedula,
            "NOMBRE": f"Empleado {cedula}",
            "SUELDO_ANTERIOR": 1000000,
            "SUELDO_NUEVO": 1100000,
            "FECHA_INICIO": start,
            "FECHA_FIN": end,
        }
    )
    values.update(extra)
    return values


def test_template_columns():
    assert len(INPUT_COLUMNS) == 11
    assert set(REQUIRED_COLUMNS) <= set(INPUT_COLUMNS)


def test_empty_batch_rejected():
    with pytest.raises(EmptyBatchError):
        validate_batch([])


def test_row_ceiling():
    rows = [row(str(n)) for n in range(3)]
    with pytest.raises(BatchTooLargeError) as excinfo:
        validate_batch(rows, max_rows=2)
    assert excinfo.value.rows == 3
    validate_batch(rows, max_rows=3)


def test_default_ceiling_message():
    err = BatchTooLargeError(10001, 10000)
    assert str(err) == "El archivo excede el límite de 10.000 filas."


def test_missing_required_columns():
    bad = [{"CEDULA": "1", "SUELDO_NUEVO": 5, "FECHA_FIN": "2024-01-31"}]
    with pytest.raises(MissingColumnsError) as excinfo:
        validate_batch(bad)
    assert excinfo.value.missing == ["FECHA_INICIO", "SUELDO_ANTERIOR"]
    assert "FECHA_INICIO, SUELDO_ANTERIOR" in str(excinfo.value)


def test_missing_columns_is_a_value_error():
    with pytest.raises(ValueError):
        process_batch([{"CEDULA": "1"}], PayrollCycle.MONTHLY)


def test_process_batch_concatenates_in_row_order():
    rows = [
        row("1", end="2024-02-29", HED_CANTIDAD=10),
        row("2", start="2024-02-05", end="2024-02-20"),
        row("3", start="01/03/2024", end="31/03/2024"),
    ]
    result = process_batch(rows, PayrollCycle.MONTHLY)

    assert [(d.identifier, d.concept) for d in result.details] == [
        ("1", "Retroactivo sueldo"),
        ("1", "Retroactivo HE diurna"),
        ("1", "Retroactivo sueldo"),
        ("3", "Retroactivo sueldo"),
    ]
    assert [(s.identifier, s.period) for s in result.summaries] == [
        ("1", "01/01/2024"),
        ("1", "01/02/2024"),
        ("3", "01/03/2024"),
    ]
    assert result.rows_without_result == [2]
    assert not result.is_empty


def test_batch_without_any_period_is_empty():
    result = process_batch([row("1", start="2024-01-02")], PayrollCycle.MONTHLY)
    assert result.is_empty
    assert result.rows_without_result == [1]


def test_parallel_matches_sequential():
    rows = [
        row(str(n), end=f"2024-{(n % 12) + 1:02d}-15", HEN_CANTIDAD=n % 5)
        for n in range(60)
    ]
    sequential = process_batch(rows, PayrollCycle.SEMI_MONTHLY)
    parallel = process_batch(rows, PayrollCycle.SEMI_MONTHLY, workers=4)

    assert parallel.details == sequential.details
    assert parallel.summaries == sequential.summaries
    assert parallel.rows_without_result == sequential.rows_without_result
