"""Pure calendar arithmetic - no I/O dependencies."""

import calendar
import re
from datetime import date, time, timedelta

from dateutil.relativedelta import relativedelta

from .errors import InvalidDate, InvalidTime

_DATE_PATTERN = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")
_TIME_PATTERN = re.compile(r"^([0-9]{2}):([0-9]{2})$")

# Sunday-first, matching the month grid and week range.
_GRID = calendar.Calendar(firstweekday=calendar.SUNDAY)


def is_leap_year(year: int) -> bool:
    """Gregorian leap year: divisible by 4, not by 100 unless by 400."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month of the Gregorian calendar."""
    if not 1 <= month <= 12:
        raise InvalidDate(f"Month out of range: {month}")
    if not date.min.year <= year <= date.max.year:
        raise InvalidDate(f"Year out of range: {year}")
    if month == 2:
        return 29 if is_leap_year(year) else 28
    if month in (4, 6, 9, 11):
        return 30
    return 31


def make_date(year: int, month: int, day: int) -> date:
    """Build a date, raising InvalidDate instead of ValueError."""
    if not 1 <= day <= days_in_month(year, month):
        raise InvalidDate(f"Day out of range: {year:04d}-{month:02d}-{day:02d}")
    return date(year, month, day)


def add_days(d: date, n: int) -> date:
    try:
        return d + timedelta(days=n)
    except OverflowError as e:
        raise InvalidDate(f"{d} + {n} days is out of range") from e


def add_months(d: date, n: int) -> date:
    """
    Shift by N months, clamping the day to the target month's length.

    Jan 31 + 1 month is Feb 28 (Feb 29 in leap years), never Mar 3.
    """
    try:
        return d + relativedelta(months=n)
    except ValueError as e:
        raise InvalidDate(f"{d} + {n} months is out of range") from e


def add_years(d: date, n: int) -> date:
    """Shift by N years; Feb 29 becomes Feb 28 in non-leap target years."""
    try:
        return d + relativedelta(years=n)
    except ValueError as e:
        raise InvalidDate(f"{d} + {n} years is out of range") from e


def week_range(d: date) -> tuple[date, date]:
    """Sunday-to-Saturday week containing the date."""
    days_since_sunday = (d.weekday() + 1) % 7
    start = d - timedelta(days=days_since_sunday)
    return start, start + timedelta(days=6)


def week_dates(d: date) -> list[date]:
    """The seven dates of the week containing the date, Sunday first."""
    start, _ = week_range(d)
    return [start + timedelta(days=i) for i in range(7)]


def month_grid(d: date) -> list[list[int | None]]:
    """
    Weeks of the date's month for calendar rendering.

    Each week holds seven cells, Sunday first: a day number, or None for
    cells belonging to the neighbouring months.
    """
    return [
        [day or None for day in week]
        for week in _GRID.monthdayscalendar(d.year, d.month)
    ]


def format_date(d: date) -> str:
    """Canonical YYYY-MM-DD form."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date(value: str) -> date:
    """Parse the canonical YYYY-MM-DD form."""
    match = _DATE_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidDate(f"Not a YYYY-MM-DD date: {value!r}")
    year, month, day = (int(g) for g in match.groups())
    return make_date(year, month, day)


def format_time(t: time) -> str:
    return f"{t.hour:02d}:{t.minute:02d}"


def parse_time(value: str) -> time:
    """Parse an HH:MM time of day."""
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidTime(f"Not an HH:MM time: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidTime(f"Time out of range: {value!r}")
    return time(hour, minute)


def format_month(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def format_week(d: date) -> str:
    """
    Heading for the week containing the date, e.g. "2024-07 week 2".

    A week belongs to the month of its Thursday, so weeks straddling a
    month boundary are labelled consistently.
    """
    start, _ = week_range(d)
    thursday = start + timedelta(days=4)
    week_number = (thursday.day - 1) // 7 + 1
    return f"{format_month(thursday)} week {week_number}"
