from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from zipfile import BadZipFile

from openpyxl.utils.exceptions import InvalidFileException

from retroactivos.batch import BatchError, process_batch
from retroactivos.config import settings
from retroactivos.periods import PayrollCycle
from retroactivos.spreadsheet import build_detail_report, build_report, read_rows

logger = logging.getLogger("compute_retroactivos")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute retroactive salary and overtime adjustments from an XLSX template."
    )
    parser.add_argument("input", type=Path, help="Filled-in template (.xlsx)")
    parser.add_argument(
        "--cycle",
        choices=[c.value for c in PayrollCycle],
        default=settings.default_cycle.value,
        help="Payroll cycle of the whole batch",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("reporte_retroactivos.xlsx"),
        help="Summary report path (one row per period)",
    )
    parser.add_argument(
        "--details",
        type=Path,
        default=None,
        help="Optional itemized detail report path",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=settings.batch_workers,
        help="Rows calculated in parallel",
    )
    parser.add_argument(
        "--max-rows",
        type=int,
        default=settings.max_batch_rows,
        help="Reject files with more rows than this",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s:%(name)s:%(message)s")

    try:
        rows = read_rows(args.input)
    except (BadZipFile, InvalidFileException, OSError) as exc:
        print(f"Error: cannot read {args.input}: {exc}", file=sys.stderr)
        return 1

    try:
        result = process_batch(
            rows,
            PayrollCycle(args.cycle),
            max_rows=args.max_rows,
            workers=args.workers,
        )
    except BatchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if result.is_empty:
        print(
            "No results: check that dates are YYYY-MM-DD or DD/MM/YYYY "
            "and cover complete closed periods.",
            file=sys.stderr,
        )
        return 1

    args.output.write_bytes(build_report(result.summaries))
    logger.info("Wrote %d summary row(s) to %s", len(result.summaries), args.output)

    if args.details:
        args.details.write_bytes(build_detail_report(result.details))
        logger.info("Wrote %d detail line(s) to %s", len(result.details), args.details)

    if result.rows_without_result:
        logger.warning(
            "Rows without a closed period: %s",
            ", ".join(str(n) for n in result.rows_without_result),
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
