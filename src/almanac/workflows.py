"""Shared workflow layer between the CLI and the notification watcher.

Each mutating workflow validates first, then runs its overlap check and the
write under the store lock. The lock is held on a file next to the store,
so two submissions from separate processes can't both pass a check against
a stale view.
"""

import logging
from datetime import date
from typing import Callable

from .adapters.json_store import JsonEventStore
from .adapters.notification_log import NotificationLog
from .config import Config
from .core.errors import EventNotFound, OverlapDetected
from .core.events import EventInstance, EventTemplate
from .core.overlap import find_overlaps, needs_overlap_check
from .core.recurrence import default_horizon, materialize, new_id
from .core.search import View, filter_by_view, search_events, sort_by_start
from .ports.event_store import EventStore

logger = logging.getLogger(__name__)


def get_store(config: Config) -> JsonEventStore:
    """Resolve the event store from config."""
    return JsonEventStore(config.data_path / "events.json")


def get_notification_log(config: Config) -> NotificationLog:
    return NotificationLog(config.data_path / "notified.json")


def horizon_for(config: Config, anchor: date) -> date:
    return default_horizon(anchor, config.horizon_years)


def create_event(
    store: EventStore,
    template: EventTemplate,
    confirm_overlap: bool = False,
    horizon_end: date | None = None,
    id_factory: Callable[[], str] = new_id,
) -> list[EventInstance]:
    """
    Validate, expand and store a new event or series.

    Single events that overlap existing ones raise OverlapDetected unless
    confirm_overlap is set. Recurring series are not checked, and their
    template is stored alongside the instances so later series edits
    re-expand from the original anchor.
    """
    template.validate()
    series_id = id_factory() if template.recurrence.is_recurring else None
    instances = materialize(template, horizon_end, id_factory, series_id=series_id)
    if not instances:
        return []

    with store.lock:
        if series_id:
            store.add_series(series_id, template, instances)
        else:
            if needs_overlap_check(template) and not confirm_overlap:
                conflicts = find_overlaps(template, store.list())
                if conflicts:
                    raise OverlapDetected(conflicts)
            store.add(instances)

    logger.info(f"Created {len(instances)} instance(s) of {template.title!r}")
    return instances


def edit_instance(
    store: EventStore,
    event_id: str,
    template: EventTemplate,
    confirm_overlap: bool = False,
) -> EventInstance:
    """
    Edit one instance in place, keeping its id and series link.

    The edited event is checked against every other event, skipping its own
    stored version.
    """
    with store.lock:
        existing = store.get(event_id)
        if existing is None:
            raise EventNotFound(f"No event with id {event_id}")

        updated = existing.with_fields(template)
        updated.validate()

        if not confirm_overlap:
            conflicts = find_overlaps(updated, store.list(), exclude_id=event_id)
            if conflicts:
                raise OverlapDetected(conflicts)
        store.update(updated)

    logger.info(f"Edited event {event_id}")
    return updated


def edit_series(
    store: EventStore,
    series_id: str,
    template: EventTemplate,
    horizon_end: date | None = None,
    id_factory: Callable[[], str] = new_id,
) -> list[EventInstance]:
    """
    Re-expand a series from a new template, replacing every linked instance.

    A template that expands to nothing removes the series.
    """
    template.validate()
    instances = materialize(template, horizon_end, id_factory, series_id=series_id)

    with store.lock:
        if store.get_series(series_id) is None:
            raise EventNotFound(f"No series with id {series_id}")
        if instances:
            store.replace_series(series_id, template, instances)
        else:
            store.delete_series(series_id)

    logger.info(f"Replaced series {series_id} with {len(instances)} instance(s)")
    return instances


def delete_event(store: EventStore, event_id: str) -> None:
    with store.lock:
        store.delete(event_id)
    logger.info(f"Deleted event {event_id}")


def delete_series(store: EventStore, series_id: str) -> int:
    """Remove every instance of a series. Returns the number removed."""
    with store.lock:
        removed = store.delete_series(series_id)
    if not removed:
        raise EventNotFound(f"No series with id {series_id}")
    logger.info(f"Deleted {removed} instance(s) of series {series_id}")
    return removed


def series_instances(store: EventStore, series_id: str) -> list[EventInstance]:
    """Instances linked to a series, in date order."""
    return sort_by_start([e for e in store.list() if e.series_id == series_id])


def series_template(store: EventStore, series_id: str) -> EventTemplate:
    """
    Template a series was last expanded from.

    Edits to single occurrences never change it, so the anchor date and
    rule stay those of the series itself.
    """
    template = store.get_series(series_id)
    if template is None:
        raise EventNotFound(f"No series with id {series_id}")
    return template


def list_events(
    store: EventStore,
    current: date | None = None,
    view: View | None = None,
    term: str = "",
) -> list[EventInstance]:
    """Stored events, optionally narrowed to a week/month view and a search term."""
    events = store.list()
    if view and current:
        events = filter_by_view(events, current, view)
    return sort_by_start(search_events(events, term))
