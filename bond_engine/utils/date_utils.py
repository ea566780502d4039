"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta

WEEKLY = "weekly"
BIWEEKLY = "biweekly"
MONTHLY = "monthly"

FREQUENCIES = (WEEKLY, BIWEEKLY, MONTHLY)

_FREQUENCY_DAYS = {WEEKLY: 7, BIWEEKLY: 14}


def add_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def add_months(from_date: date, months: int) -> date:
    """
    Add calendar months to a date.

    The day is clamped to the last day of the target month, so
    Jan 31 + 1 month is Feb 28 (or 29).
    """
    year = from_date.year + (from_date.month - 1 + months) // 12
    month = (from_date.month - 1 + months) % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_period(from_date: date, frequency: str, times: int = 1) -> date:
    """
    Move a date forward by `times` billing periods.

    Offsets are always taken from `from_date` itself, so stepping a
    month-end anchor does not drift (Jan 31 -> Feb 29 -> Mar 31).

    Raises:
        ValueError: Unknown frequency
    """
    if frequency == MONTHLY:
        return add_months(from_date, times)
    if frequency in _FREQUENCY_DAYS:
        return add_days(from_date, _FREQUENCY_DAYS[frequency] * times)
    raise ValueError(f"Unknown payment frequency: {frequency!r}")


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end (end - start)"""
    return (end - start).days


def month_start(from_date: date) -> date:
    return from_date.replace(day=1)
