"""
Fiscal calendar helpers.

Rules (defaults: weeks start on Saturday, fiscal year starts in July):

- Fiscal year N is named after the calendar year it ends in
  (FY2026 runs July 2025 - June 2026).
- Week 1 of FY N starts on the last week-start day on or before the last
  day of the month preceding the start month of year N-1
  (the last Saturday on or before June 30, 2025 for FY2026).
- Week 2 starts on the first week-start day on or after the first day of
  the start month; every later week is a 7-day block from there.

Weekdays use Python's numbering (Monday=0 ... Saturday=5, Sunday=6).
"""

from datetime import date, datetime, timedelta
from typing import Tuple, Union

SATURDAY = 5
DEFAULT_WEEK_START_DAY = SATURDAY
DEFAULT_START_MONTH = 7
MAX_WEEK_NUMBER = 52

DateLike = Union[date, datetime, str]


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip()).date()
    raise TypeError(f"Expected date, datetime or ISO string, got {type(value).__name__}")


def _first_weekday_on_or_after(day: date, weekday: int) -> date:
    return day + timedelta(days=(weekday - day.weekday()) % 7)


def _last_weekday_on_or_before(day: date, weekday: int) -> date:
    return day - timedelta(days=(day.weekday() - weekday) % 7)


def _start_month_first_day(fiscal_year: int, start_month: int) -> date:
    # FY N starts in calendar year N-1 unless the fiscal year is calendar aligned
    year = fiscal_year - 1 if start_month > 1 else fiscal_year
    return date(year, start_month, 1)


def fiscal_year_start(
    fiscal_year: int,
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    start_month: int = DEFAULT_START_MONTH,
) -> date:
    """First day of week 1 of ``fiscal_year``."""
    first_day = _start_month_first_day(fiscal_year, start_month)
    return _last_weekday_on_or_before(first_day - timedelta(days=1), week_start_day)


def get_fiscal_year(
    value: DateLike,
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    start_month: int = DEFAULT_START_MONTH,
) -> int:
    """
    Fiscal year a date belongs to.

    >>> get_fiscal_year(date(2025, 8, 10))
    2026
    >>> get_fiscal_year(date(2025, 1, 15))
    2025
    """
    day = _to_date(value)
    candidate = day.year + 1
    while day < fiscal_year_start(candidate, week_start_day, start_month):
        candidate -= 1
    return candidate


def _second_week_start(fiscal_year: int, week_start_day: int, start_month: int) -> date:
    return _first_weekday_on_or_after(_start_month_first_day(fiscal_year, start_month), week_start_day)


def calculate_fiscal_week_number(
    value: DateLike,
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    start_month: int = DEFAULT_START_MONTH,
) -> int:
    """
    Fiscal week number (1-52) of a date.

    Days before the first week-start day of the fiscal year's start month
    (including the late days of the previous month) are week 1.
    """
    day = _to_date(value)
    fiscal_year = get_fiscal_year(day, week_start_day, start_month)
    second_week = _second_week_start(fiscal_year, week_start_day, start_month)

    if day < second_week:
        return 1

    week_number = (day - second_week).days // 7 + 2
    return max(1, min(MAX_WEEK_NUMBER, week_number))


def get_fiscal_week_range(
    fiscal_year: int,
    week_number: int,
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    start_month: int = DEFAULT_START_MONTH,
) -> Tuple[date, date]:
    """Start and end date (inclusive) of a fiscal week."""
    if week_number < 1:
        raise ValueError(f"Week number must be positive: {week_number}")

    second_week = _second_week_start(fiscal_year, week_start_day, start_month)
    if week_number == 1:
        return (
            fiscal_year_start(fiscal_year, week_start_day, start_month),
            second_week - timedelta(days=1),
        )

    start = second_week + timedelta(weeks=week_number - 2)
    return start, start + timedelta(days=6)


def weeks_in_fiscal_year(
    fiscal_year: int,
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    start_month: int = DEFAULT_START_MONTH,
) -> int:
    """Number of the last fiscal week of ``fiscal_year``."""
    last_day = fiscal_year_start(fiscal_year + 1, week_start_day, start_month) - timedelta(days=1)
    return calculate_fiscal_week_number(last_day, week_start_day, start_month)


def format_work_week(value: Union[str, int]) -> str:
    """'1' -> '01', 10 -> '10'."""
    return str(value).strip().zfill(2)


def format_fiscal_week(
    value: DateLike,
    style: str = "YYYY-WW",
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    start_month: int = DEFAULT_START_MONTH,
) -> str:
    """
    Format a date's fiscal week.

    >>> format_fiscal_week(date(2025, 8, 10))
    '2026-07'
    >>> format_fiscal_week(date(2025, 8, 10), "YYYY Week WW")
    '2026 Week 07'
    """
    fiscal_year = get_fiscal_year(value, week_start_day, start_month)
    week = format_work_week(calculate_fiscal_week_number(value, week_start_day, start_month))
    if style == "YYYY Week WW":
        return f"{fiscal_year} Week {week}"
    if style != "YYYY-WW":
        raise ValueError(f"Unsupported fiscal week format: {style}")
    return f"{fiscal_year}-{week}"


def fiscal_week_to_year_month(
    fiscal_year_week: str,
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    start_month: int = DEFAULT_START_MONTH,
) -> str:
    """
    Convert ``YYYYWW`` to the ``YYMM`` of the week's first day.

    >>> fiscal_week_to_year_month("202601")
    '2506'
    >>> fiscal_week_to_year_month("202610")
    '2508'
    """
    if len(fiscal_year_week) != 6 or not fiscal_year_week.isdigit():
        raise ValueError('Invalid fiscal year week format. Expected YYYYWW (e.g., "202601")')

    fiscal_year = int(fiscal_year_week[:4])
    week_number = int(fiscal_year_week[4:])
    if not 1 <= week_number <= MAX_WEEK_NUMBER:
        raise ValueError(f"Week number must be between 1 and {MAX_WEEK_NUMBER}")

    start, _ = get_fiscal_week_range(fiscal_year, week_number, week_start_day, start_month)
    return start.strftime("%y%m")


def month_year(value: DateLike) -> str:
    """Calendar ``YYYY-MM`` of a date."""
    return _to_date(value).strftime("%Y-%m")


