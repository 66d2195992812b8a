"""JSON file event store adapter."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from filelock import FileLock

from almanac.core.errors import EventNotFound, InvalidEvent
from almanac.core.events import EventInstance, EventTemplate

logger = logging.getLogger(__name__)


class JsonEventStore:
    """
    File-based event storage.

    Implements EventStore protocol. Events and the template of each recurring
    series live in one JSON document ({"events": [...], "series": {...}})
    that is rewritten atomically on every change, so a batch either lands
    completely or not at all.

    `lock` is an OS-level lock on a sidecar file, shared by every process
    using the same store path. It is re-entrant within one lock object.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.lock = FileLock(str(self.path) + ".lock")

    def _load(self) -> tuple[list[EventInstance], dict[str, EventTemplate]]:
        if not self.path.exists():
            return [], {}
        try:
            data = json.loads(self.path.read_text())
            events = [EventInstance.from_dict(item) for item in data.get("events", [])]
            series = {
                series_id: EventTemplate.from_dict(item)
                for series_id, item in data.get("series", {}).items()
            }
        except (json.JSONDecodeError, AttributeError, ValueError) as e:
            logger.error(f"Failed to read event store {self.path}: {e}")
            raise RuntimeError(f"Event store {self.path} is unreadable: {e}") from e
        return events, series

    def _save(self, events: list[EventInstance], series: dict[str, EventTemplate]) -> None:
        document = {
            "events": [e.to_dict() for e in events],
            "series": {series_id: t.to_dict() for series_id, t in series.items()},
        }
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(document, indent=2))
        tmp.replace(self.path)

    @staticmethod
    def _check_ids(existing: list[EventInstance], events: list[EventInstance]) -> None:
        seen = {e.id for e in existing}
        for event in events:
            if event.id in seen:
                raise InvalidEvent(f"Duplicate event id: {event.id}")
            seen.add(event.id)

    def list(self) -> list[EventInstance]:
        with self.lock:
            return self._load()[0]

    def get(self, event_id: str) -> EventInstance | None:
        with self.lock:
            for event in self.list():
                if event.id == event_id:
                    return event
            return None

    def get_series(self, series_id: str) -> EventTemplate | None:
        with self.lock:
            return self._load()[1].get(series_id)

    def add(self, events: list[EventInstance]) -> None:
        with self.lock:
            current, series = self._load()
            self._check_ids(current, events)
            self._save(current + events, series)
            logger.debug(f"Added {len(events)} event(s)")

    def add_series(self, series_id: str, template: EventTemplate, events: list[EventInstance]) -> None:
        with self.lock:
            current, series = self._load()
            if series_id in series:
                raise InvalidEvent(f"Duplicate series id: {series_id}")
            self._check_ids(current, events)
            series[series_id] = template
            self._save(current + events, series)
            logger.debug(f"Added series {series_id} with {len(events)} event(s)")

    def update(self, event: EventInstance) -> None:
        with self.lock:
            current, series = self._load()
            for i, existing in enumerate(current):
                if existing.id == event.id:
                    current[i] = event
                    self._save(current, series)
                    return
            raise EventNotFound(f"No event with id {event.id}")

    def delete(self, event_id: str) -> None:
        with self.lock:
            current, series = self._load()
            removed = [e for e in current if e.id == event_id]
            if not removed:
                raise EventNotFound(f"No event with id {event_id}")
            remaining = [e for e in current if e.id != event_id]
            series_id = removed[0].series_id
            # Last occurrence gone, so the series is gone too
            if series_id and not any(e.series_id == series_id for e in remaining):
                series.pop(series_id, None)
            self._save(remaining, series)

    def delete_series(self, series_id: str) -> int:
        with self.lock:
            current, series = self._load()
            remaining = [e for e in current if e.series_id != series_id]
            removed = len(current) - len(remaining)
            if removed or series_id in series:
                series.pop(series_id, None)
                self._save(remaining, series)
            return removed

    def replace_series(self, series_id: str, template: EventTemplate, events: list[EventInstance]) -> None:
        with self.lock:
            current, series = self._load()
            remaining = [e for e in current if e.series_id != series_id]
            self._check_ids(remaining, events)
            series[series_id] = template
            self._save(remaining + events, series)
            logger.debug(f"Replaced series {series_id} with {len(events)} event(s)")
