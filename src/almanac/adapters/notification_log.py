"""Persisted record of delivered notifications."""

import json
import logging
from pathlib import Path

from filelock import FileLock

logger = logging.getLogger(__name__)


class NotificationLog:
    """
    Ids of event instances that have already notified.

    The scheduler core is stateless; this file carries the already-notified
    set across polling ticks and restarts. Hold `lock` from reading the set
    to recording new ids, so the watcher and `due --mark` never both claim
    the same notification.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.lock = FileLock(str(self.path) + ".lock")

    def load(self) -> set[str]:
        """Load notified ids. A missing or corrupt file reads as empty."""
        if not self.path.exists():
            return set()
        try:
            return set(json.loads(self.path.read_text()).get("notified", []))
        except (json.JSONDecodeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable notification log {self.path}: {e}")
            return set()

    def save(self, ids: set[str]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps({"notified": sorted(ids)}))
        tmp.replace(self.path)

    def record(self, new_ids: list[str]) -> set[str]:
        """Add ids to the log and return the full set."""
        with self.lock:
            ids = self.load()
            ids.update(new_ids)
            self.save(ids)
            return ids

    def prune(self, live_ids: set[str]) -> None:
        """Drop ids of events that no longer exist."""
        with self.lock:
            ids = self.load()
            kept = ids & live_ids
            if kept != ids:
                self.save(kept)
