"""Adapters - I/O implementations of ports."""

from .json_store import JsonEventStore
from .notification_log import NotificationLog
from .holiday_api import NagerHolidayAdapter
from .console_notifier import ConsoleNotifier

__all__ = [
    "JsonEventStore",
    "NotificationLog",
    "NagerHolidayAdapter",
    "ConsoleNotifier",
]
