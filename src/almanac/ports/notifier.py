"""Notification delivery interface."""

from typing import Protocol

from almanac.core.events import EventInstance


class Notifier(Protocol):
    """Interface for surfacing a due notification to the user."""

    async def notify(self, event: EventInstance, message: str) -> None:
        ...
