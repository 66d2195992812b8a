"""Overlap detection between events on the same date.

Intervals are half-open: [10:00, 11:00) and [11:00, 12:00) do not overlap.
"""

from datetime import time
from typing import Iterable, Protocol

from .events import EventInstance, EventTemplate


class Scheduled(Protocol):
    """Anything placed on a date with a start and end time."""

    date: object
    start_time: time
    end_time: time


def intervals_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Half-open [start1, end1) and [start2, end2) intersect."""
    return start1 < end2 and start2 < end1


def overlaps(a: Scheduled, b: Scheduled) -> bool:
    """Same date and intersecting times."""
    return a.date == b.date and intervals_overlap(a.start_time, a.end_time, b.start_time, b.end_time)


def find_overlaps(
    candidate: Scheduled,
    existing: Iterable[EventInstance],
    exclude_id: str | None = None,
) -> list[EventInstance]:
    """
    Existing events that overlap the candidate, in input order.

    exclude_id skips the candidate's own stored version when editing.
    """
    return [
        e for e in existing
        if (exclude_id is None or e.id != exclude_id) and overlaps(candidate, e)
    ]


def needs_overlap_check(template: EventTemplate) -> bool:
    """
    Whether creating this template is checked for overlaps.

    Recurring series may co-occur with other events and are exempt; single
    events are checked.
    """
    return not template.recurrence.is_recurring
