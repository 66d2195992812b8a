"""Console notifier - prints due notifications."""

import click

from almanac.core.events import EventInstance


class ConsoleNotifier:
    """Implements Notifier protocol by echoing to the terminal."""

    async def notify(self, event: EventInstance, message: str) -> None:
        click.echo(f"🔔 [{event.start.strftime('%Y-%m-%d %H:%M')}] {message}")
