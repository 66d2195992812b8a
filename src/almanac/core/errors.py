"""Error kinds raised by the calendar core."""


class CalendarError(Exception):
    """Base class for calendar errors."""

    pass


class InvalidDate(CalendarError, ValueError):
    """Malformed or out-of-range calendar date."""

    pass


class InvalidTime(CalendarError, ValueError):
    """Malformed time-of-day string."""

    pass


class InvalidTimeRange(CalendarError, ValueError):
    """End time is not after start time."""

    pass


class InvalidRecurrenceRule(CalendarError, ValueError):
    """Non-positive interval, or end date before the anchor date."""

    pass


class InvalidEvent(CalendarError, ValueError):
    """Event fields that fail validation (empty title, negative lead time)."""

    pass


class EventNotFound(CalendarError, KeyError):
    """No event with the given id or series id."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Event not found"


class OverlapDetected(CalendarError):
    """
    A single event would overlap existing events.

    Not a hard failure: the conflicts are carried as data so the caller can
    show them and retry with confirmation.
    """

    def __init__(self, conflicts: list):
        self.conflicts = list(conflicts)
        titles = ", ".join(c.title for c in self.conflicts)
        super().__init__(f"Overlaps with {len(self.conflicts)} event(s): {titles}")
