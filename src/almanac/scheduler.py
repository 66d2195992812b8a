"""Notification watcher - polls the store on a fixed cadence."""

import asyncio
import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters.console_notifier import ConsoleNotifier
from .adapters.notification_log import NotificationLog
from .config import Config, load_config
from .core.events import EventInstance
from .core.notifications import due_notifications, notification_message
from .ports.event_store import EventStore
from .ports.notifier import Notifier
from .workflows import get_notification_log, get_store

logger = logging.getLogger(__name__)


async def poll_notifications(
    store: EventStore,
    log: NotificationLog,
    notifiers: list[Notifier],
    now: datetime | None = None,
) -> list[EventInstance]:
    """
    One polling tick: deliver every newly due notification.

    Ids are claimed under the log lock before delivery, so a crash mid-send
    can drop a notification but never repeat one.
    """
    now = now or datetime.now()
    with log.lock:
        due = due_notifications(now, store.list(), log.load())
        if not due:
            return []
        log.record([e.id for e in due])

    for event in due:
        message = notification_message(event)
        logger.info(f"Notifying: {message}")
        for notifier in notifiers:
            await notifier.notify(event, message)
    return due


def build_notifiers(config: Config) -> list[Notifier]:
    """Console output, plus Telegram when a bot token and users are configured."""
    notifiers: list[Notifier] = [ConsoleNotifier()]
    if config.telegram_bot_token and config.telegram_allowed_users:
        from .adapters.telegram_notifier import TelegramNotifier

        notifiers.append(TelegramNotifier(config.telegram_bot_token, config.telegram_allowed_users))
        logger.info(f"Telegram notifications enabled for users: {config.telegram_allowed_users}")
    elif config.telegram_bot_token:
        logger.warning("TELEGRAM_BOT_TOKEN set but no TELEGRAM_ALLOWED_USERS - Telegram disabled")
    return notifiers


def setup_scheduler(
    store: EventStore,
    log: NotificationLog,
    notifiers: list[Notifier],
    config: Config | None = None,
) -> AsyncIOScheduler:
    """Set up the polling job."""
    if config is None:
        config = load_config()

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        poll_notifications,
        IntervalTrigger(seconds=config.poll_seconds),
        args=[store, log, notifiers],
        id="notification_poll",
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"Polling for notifications every {config.poll_seconds}s")
    return scheduler


def run_watcher(config: Config | None = None) -> None:
    """Run the notification watcher until interrupted."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = config or load_config()
    store = get_store(config)
    log = get_notification_log(config)
    log.prune({e.id for e in store.list()})
    notifiers = build_notifiers(config)

    async def main() -> None:
        # Scheduler must start inside the running event loop
        scheduler = setup_scheduler(store, log, notifiers, config)
        scheduler.start()
        logger.info("Scheduler started")
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown(wait=False)

    asyncio.run(main())
