"""Event store interface."""

from __future__ import annotations

from typing import ContextManager, Protocol

from almanac.core.events import EventInstance, EventTemplate


class EventStore(Protocol):
    """
    Interface for persisting event instances and series templates.

    Each method is atomic for the instances it touches. Callers hold `lock`
    around check-then-act sequences (overlap check, then write); it must
    exclude other processes writing the same store, and be re-entrant.
    """

    lock: ContextManager

    def list(self) -> list[EventInstance]:
        """All current event instances."""
        ...

    def get(self, event_id: str) -> EventInstance | None:
        """Look up one instance by id."""
        ...

    def get_series(self, series_id: str) -> EventTemplate | None:
        """The template a series was last expanded from."""
        ...

    def add(self, events: list[EventInstance]) -> None:
        """Insert a batch of new standalone instances."""
        ...

    def add_series(self, series_id: str, template: EventTemplate, events: list[EventInstance]) -> None:
        """Insert a new series: its template and every expanded instance."""
        ...

    def update(self, event: EventInstance) -> None:
        """Replace the stored instance with the same id."""
        ...

    def delete(self, event_id: str) -> None:
        """Remove one instance."""
        ...

    def delete_series(self, series_id: str) -> int:
        """Remove a series and every instance in it. Returns the number removed."""
        ...

    def replace_series(self, series_id: str, template: EventTemplate, events: list[EventInstance]) -> None:
        """Swap a series' template and every instance in it for new ones."""
        ...
