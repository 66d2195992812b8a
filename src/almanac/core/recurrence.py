"""Recurrence expansion - turns a template into dated occurrences.

Pure functions - no I/O, no hidden state.

Monthly and yearly series skip occurrences whose anchor day does not exist
in the target month: a series on the 31st has no occurrence in April, and a
Feb 29 series only occurs in leap years. The date is never clamped to the
month's last day.
"""

import uuid
from datetime import date
from typing import Callable

from .dates import add_days, days_in_month, make_date
from .errors import InvalidDate
from .events import EventInstance, EventTemplate, Frequency

# Series without an end date run until Dec 31 of the year after their anchor.
DEFAULT_HORIZON_YEARS = 1
# Hard cap on the occurrences emitted for one series.
MAX_OCCURRENCES = 1000


def new_id() -> str:
    return uuid.uuid4().hex


def default_horizon(anchor: date, years: int = DEFAULT_HORIZON_YEARS) -> date:
    """Last date generated for a series that has no end date."""
    return date(min(anchor.year + years, date.max.year), 12, 31)


def _occurrence(anchor: date, frequency: Frequency, steps: int) -> date | None:
    """The anchor advanced by N steps, or None when that month lacks the anchor day."""
    if frequency is Frequency.DAILY:
        return add_days(anchor, steps)
    if frequency is Frequency.WEEKLY:
        return add_days(anchor, 7 * steps)

    months = steps if frequency is Frequency.MONTHLY else 12 * steps
    total = anchor.month - 1 + months
    year, month = anchor.year + total // 12, total % 12 + 1
    if year > date.max.year:
        raise InvalidDate(f"Occurrence beyond year {date.max.year}")
    if anchor.day > days_in_month(year, month):
        return None
    return make_date(year, month, anchor.day)


def expand(template: EventTemplate, horizon_end: date | None = None) -> list[date]:
    """
    Dates on which a template occurs, in order.

    A non-recurring template yields its own date. A recurring one yields
    every occurrence up to the earliest of its end date, the horizon
    (defaulting to default_horizon) and MAX_OCCURRENCES.
    """
    rule = template.recurrence
    rule.validate(template.date)
    if not rule.is_recurring:
        return [template.date]

    last = horizon_end or default_horizon(template.date)
    if rule.end_date is not None:
        last = min(last, rule.end_date)

    dates: list[date] = []
    steps = 0
    while len(dates) < MAX_OCCURRENCES:
        try:
            current = _occurrence(template.date, rule.frequency, steps * rule.interval)
        except InvalidDate:
            break
        steps += 1
        if current is None:
            continue
        if current > last:
            break
        dates.append(current)
    return dates


def materialize(
    template: EventTemplate,
    horizon_end: date | None = None,
    id_factory: Callable[[], str] = new_id,
    series_id: str | None = None,
) -> list[EventInstance]:
    """
    Expand a template into event instances.

    Recurring instances share one series id (fresh unless given); a
    standalone event gets none.
    """
    dates = expand(template, horizon_end)
    if template.recurrence.is_recurring:
        series_id = series_id or id_factory()
    else:
        series_id = None
    return [
        EventInstance.from_template(template, id_factory(), on_date=d, series_id=series_id)
        for d in dates
    ]
