"""Search and calendar-view filtering - no I/O dependencies."""

from datetime import date
from typing import Literal

from .dates import week_range
from .events import EventInstance

View = Literal["week", "month"]


def matches(event: EventInstance, term: str) -> bool:
    """Case-insensitive substring match on title, description or location."""
    needle = term.strip().lower()
    if not needle:
        return True
    return any(needle in field.lower() for field in (event.title, event.description, event.location))


def search_events(events: list[EventInstance], term: str) -> list[EventInstance]:
    """
    Filter events by a search term.

    A blank term returns every event. Pure function - no I/O.
    """
    return [e for e in events if matches(e, term)]


def filter_by_view(events: list[EventInstance], current: date, view: View) -> list[EventInstance]:
    """Events in the week (Sunday-Saturday) or month containing the date."""
    if view == "week":
        start, end = week_range(current)
        return [e for e in events if start <= e.date <= end]
    if view == "month":
        return [e for e in events if (e.date.year, e.date.month) == (current.year, current.month)]
    raise ValueError(f"Unknown view: {view}")


def filter_events_by_date(
    events: list[EventInstance],
    start_date: date,
    end_date: date | None = None,
) -> list[EventInstance]:
    """Events within an inclusive date range."""
    end_date = end_date or start_date
    return [e for e in events if start_date <= e.date <= end_date]


def events_for_day(events: list[EventInstance], day: date) -> list[EventInstance]:
    return sort_by_start(filter_events_by_date(events, day))


def sort_by_start(events: list[EventInstance]) -> list[EventInstance]:
    """Sort events by date, then start time."""
    return sorted(events, key=lambda e: (e.date, e.start_time))
