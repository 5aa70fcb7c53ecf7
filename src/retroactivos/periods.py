from __future__ import annotations

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

logger = logging.getLogger(__name__)

FIRST_HALF_LAST_DAY = 15
SECOND_HALF_FIRST_DAY = 16
# A hyphenated date whose first component is above this is read as YYYY-MM-DD.
ISO_YEAR_THRESHOLD = 1000

# date() accepts at most four digits per component
_DATE_PATTERN = re.compile(r"^\s*([0-9]{1,4})([-/])([0-9]{1,4})\2([0-9]{1,4})\s*$")


class PayrollCycle(str, Enum):
    MONTHLY = "mensual"
    SEMI_MONTHLY = "quincenal"


class DateFormat(str, Enum):
    ISO = "YYYY-MM-DD"
    DAY_FIRST_HYPHEN = "DD-MM-YYYY"
    DAY_FIRST_SLASH = "DD/MM/YYYY"


@dataclass(frozen=True)
class Period:
    start: date  # inclusive
    end: date    # inclusive


def detect_date_format(text: str) -> DateFormat | None:
    match = _DATE_PATTERN.match(text)
    if not match:
        return None
    first, separator = match.group(1), match.group(2)
    if separator == "/":
        return DateFormat.DAY_FIRST_SLASH
    if int(first) > ISO_YEAR_THRESHOLD:
        return DateFormat.ISO
    return DateFormat.DAY_FIRST_HYPHEN


def parse_date(value: object) -> date | None:
    """
    Parse a range boundary.

    Accepts YYYY-MM-DD, DD-MM-YYYY and DD/MM/YYYY strings as well as
    date / datetime values read from spreadsheet cells. Returns None for
    anything else, including impossible calendar dates.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    fmt = detect_date_format(value)
    if fmt is None:
        return None

    match = _DATE_PATTERN.match(value)
    a, b, c = int(match.group(1)), int(match.group(3)), int(match.group(4))
    if fmt == DateFormat.ISO:
        year, month, day = a, b, c
    else:
        year, month, day = c, b, a

    try:
        return date(year, month, day)
    except ValueError:
        return None


def month_last_day(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def format_period_date(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def _iter_months(start: date, end: date):
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        month += 1
        if month > 12:
            month = 1
            year += 1


def _covers(
    start: date,
    end: date,
    year: int,
    month: int,
    first_day: int,
    last_day: int,
) -> bool:
    """
    True when the range covers days first_day..last_day of the visited month.

    Only the start and end months can be partial; months in between always
    qualify.
    """
    if (year, month) == (start.year, start.month) and start.day > first_day:
        return False
    if (year, month) == (end.year, end.month) and end.day < last_day:
        return False
    return True


def segment(start_value: object, end_value: object, cycle: PayrollCycle) -> list[Period]:
    """
    Decompose a date range into the closed payroll periods it fully covers.

    Monthly cycles yield whole months, semi-monthly cycles yield the halves
    1-15 and 16-last day. A period only partially covered at either edge of
    the range is dropped. Unparseable boundaries yield no periods.
    """
    cycle = PayrollCycle(cycle)
    start = parse_date(start_value)
    end = parse_date(end_value)
    if start is None or end is None:
        logger.debug("Unparseable range %r..%r", start_value, end_value)
        return []

    periods: list[Period] = []
    for year, month in _iter_months(start, end):
        last = month_last_day(year, month)

        if cycle == PayrollCycle.MONTHLY:
            if _covers(start, end, year, month, 1, last):
                periods.append(Period(date(year, month, 1), date(year, month, last)))
            continue

        if _covers(start, end, year, month, 1, FIRST_HALF_LAST_DAY):
            periods.append(
                Period(date(year, month, 1), date(year, month, FIRST_HALF_LAST_DAY))
            )
        if _covers(start, end, year, month, SECOND_HALF_FIRST_DAY, last):
            periods.append(
                Period(date(year, month, SECOND_HALF_FIRST_DAY), date(year, month, last))
            )

    logger.debug("Range %s..%s (%s) -> %d period(s)", start, end, cycle.value, len(periods))
    return periods
