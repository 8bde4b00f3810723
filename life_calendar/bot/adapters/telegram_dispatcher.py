"""Telegram MessageDispatcher adapter.

Wraps telegram.Bot to implement the MessageDispatcher protocol.
"""

from telegram import Bot
from telegram.error import TelegramError

from ...domain.errors import DeliveryError


class TelegramMessageDispatcher:
    """Adapter: telegram.Bot -> MessageDispatcher protocol."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_message(self, user_id: int, text: str) -> None:
        """Send plain text to the user's private chat."""
        try:
            await self._bot.send_message(chat_id=user_id, text=text)
        except TelegramError as e:
            raise DeliveryError(user_id, str(e)) from e
