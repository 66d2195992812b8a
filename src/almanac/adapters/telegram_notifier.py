"""Telegram notifier - sends due notifications through a bot."""

import logging

from telegram import Bot
from telegram.error import TelegramError

from almanac.core.events import EventInstance

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """
    Telegram bot notifier.

    Implements Notifier protocol. Sends each message to every allowed user;
    a failed send is logged and does not stop the others.
    """

    def __init__(self, token: str, user_ids: list[int], bot: Bot | None = None):
        if not token and bot is None:
            raise ValueError("TELEGRAM_BOT_TOKEN not configured. Add it to almanac.conf")
        self.bot = bot or Bot(token)
        self.user_ids = user_ids

    async def notify(self, event: EventInstance, message: str) -> None:
        for user_id in self.user_ids:
            try:
                await self.bot.send_message(chat_id=user_id, text=f"🔔 {message}")
            except TelegramError as e:
                logger.error(f"Failed to send notification to user {user_id}: {e}")
