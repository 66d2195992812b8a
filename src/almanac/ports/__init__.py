"""Ports - interfaces/protocols for external dependencies."""

from .event_store import EventStore
from .notifier import Notifier
from .holiday_source import HolidaySource

__all__ = [
    "EventStore",
    "Notifier",
    "HolidaySource",
]
