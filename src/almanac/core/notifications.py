"""Notification scheduling - pure, stateless, driven by an injected clock.

An external loop calls due_notifications on a fixed cadence and persists the
ids it delivered. Because the result depends only on the arguments, a
delayed, repeated or skipped tick never duplicates a notification.
"""

from datetime import datetime, timedelta
from typing import AbstractSet, Iterable

from .events import EventInstance


def notification_window(event: EventInstance) -> tuple[datetime, datetime]:
    """The [start - lead, start) interval in which the event is due."""
    return event.start - timedelta(minutes=event.notification_minutes), event.start


def is_due(event: EventInstance, now: datetime, already_notified: AbstractSet[str]) -> bool:
    """
    Whether an event should notify now.

    Events that have already started never notify, even inside their
    window. Delivery is at most once per instance id.
    """
    if event.notification_minutes <= 0 or event.id in already_notified:
        return False
    opens, start = notification_window(event)
    return opens <= now < start


def due_notifications(
    now: datetime,
    events: Iterable[EventInstance],
    already_notified: AbstractSet[str],
) -> list[EventInstance]:
    """Events that have entered their notification window, in input order."""
    return [e for e in events if is_due(e, now, already_notified)]


def next_notification_at(
    now: datetime,
    events: Iterable[EventInstance],
    already_notified: AbstractSet[str],
) -> datetime | None:
    """When the next window opens after now, or None if nothing is pending."""
    upcoming = [
        notification_window(e)[0]
        for e in events
        if e.notification_minutes > 0
        and e.id not in already_notified
        and notification_window(e)[0] > now
    ]
    return min(upcoming, default=None)


def notification_message(event: EventInstance) -> str:
    """Alert text, e.g. "Standup starts in 10 minutes."."""
    minutes = event.notification_minutes
    unit = "minute" if minutes == 1 else "minutes"
    return f"{event.title} starts in {minutes} {unit}."
