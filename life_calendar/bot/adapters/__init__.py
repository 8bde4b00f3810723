from .telegram_dispatcher import TelegramMessageDispatcher

__all__ = ["TelegramMessageDispatcher"]
