"""Functional core - pure calendar logic with no I/O."""

from .errors import (
    CalendarError,
    EventNotFound,
    InvalidDate,
    InvalidEvent,
    InvalidRecurrenceRule,
    InvalidTime,
    InvalidTimeRange,
    OverlapDetected,
)
from .events import Category, EventInstance, EventTemplate, Frequency, RecurrenceRule
from .recurrence import expand, materialize
from .overlap import find_overlaps, needs_overlap_check
from .notifications import due_notifications, notification_message
from .search import search_events, filter_by_view, sort_by_start

__all__ = [
    # Errors
    "CalendarError",
    "EventNotFound",
    "InvalidDate",
    "InvalidEvent",
    "InvalidRecurrenceRule",
    "InvalidTime",
    "InvalidTimeRange",
    "OverlapDetected",
    # Model
    "Category",
    "EventInstance",
    "EventTemplate",
    "Frequency",
    "RecurrenceRule",
    # Recurrence
    "expand",
    "materialize",
    # Overlap
    "find_overlaps",
    "needs_overlap_check",
    # Notifications
    "due_notifications",
    "notification_message",
    # Search
    "search_events",
    "filter_by_view",
    "sort_by_start",
]
