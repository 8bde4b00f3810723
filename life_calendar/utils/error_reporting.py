"""Standardized error reporting for bot handlers.

Provides:
- ErrorCategory enum for classifying exceptions
- classify_error() to map exceptions to categories
- ErrorCounter for tracking error counts by category, logged at shutdown
- handle_errors() decorator for wrapping async handler functions
"""

import functools
import logging
from enum import Enum
from typing import Dict, Optional

from ..domain.errors import (
    ConfigurationError,
    DeliveryError,
    PersistenceError,
    UserInputError,
)

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories for classifying handler errors."""

    NETWORK = "network"
    DATABASE = "database"
    VALIDATION = "validation"
    DELIVERY = "delivery"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


def classify_error(exc: Exception) -> ErrorCategory:
    """Classify an exception into an error category."""
    if isinstance(exc, DeliveryError):
        return ErrorCategory.DELIVERY
    if isinstance(exc, PersistenceError):
        return ErrorCategory.DATABASE
    if isinstance(exc, ConfigurationError):
        return ErrorCategory.CONFIGURATION
    if isinstance(exc, UserInputError):
        return ErrorCategory.VALIDATION

    # Network errors
    if isinstance(exc, (ConnectionError, TimeoutError, OSError)):
        return ErrorCategory.NETWORK

    # Database errors (check module name for SQLAlchemy)
    module = getattr(type(exc), "__module__", "") or ""
    if "sqlalchemy" in module:
        return ErrorCategory.DATABASE

    if isinstance(exc, (ValueError, TypeError, KeyError, IndexError)):
        return ErrorCategory.VALIDATION

    return ErrorCategory.INTERNAL


class ErrorCounter:
    """In-memory counter for errors by category."""

    def __init__(self) -> None:
        self._counts: Dict[ErrorCategory, int] = {cat: 0 for cat in ErrorCategory}

    def increment(self, category: ErrorCategory) -> None:
        self._counts[category] = self._counts.get(category, 0) + 1

    def get_counts(self) -> Dict[ErrorCategory, int]:
        return dict(self._counts)

    def get_total(self) -> int:
        return sum(self._counts.values())


# Global singleton
_error_counter: Optional[ErrorCounter] = None


def get_error_counter() -> ErrorCounter:
    """Get the global error counter singleton."""
    global _error_counter
    if _error_counter is None:
        _error_counter = ErrorCounter()
    return _error_counter


def log_error_summary() -> None:
    """Log handler error counts by category since startup."""
    counter = get_error_counter()
    total = counter.get_total()
    if not total:
        logger.info("No handler errors since startup")
        return

    details = ", ".join(
        f"{category.value}={count}"
        for category, count in counter.get_counts().items()
        if count
    )
    logger.warning("Handler errors since startup: %d (%s)", total, details)


GENERIC_APOLOGY = "Извините, произошла ошибка. Пожалуйста, попробуйте еще раз позже."


def handle_errors(handler_name: str):
    """Decorator that wraps async handlers with standardized error handling.

    Catches exceptions, classifies them, logs structured context,
    increments the global error counter, and sends a generic apology
    without implementation detail.

    Usage:
        @handle_errors("my_command")
        async def my_command(update, context):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(update, context, *args, **kwargs):
            try:
                return await func(update, context, *args, **kwargs)
            except Exception as exc:
                category = classify_error(exc)
                get_error_counter().increment(category)

                chat_id = None
                user_id = None
                if update and getattr(update, "effective_chat", None):
                    chat_id = update.effective_chat.id
                if update and getattr(update, "effective_user", None):
                    user_id = update.effective_user.id

                logger.error(
                    "Handler '%s' error [%s]: %s " "(chat_id=%s, user_id=%s)",
                    handler_name,
                    category.value,
                    exc,
                    chat_id,
                    user_id,
                    exc_info=True,
                )

                if chat_id is not None and category != ErrorCategory.DELIVERY:
                    try:
                        await context.bot.send_message(
                            chat_id=chat_id, text=GENERIC_APOLOGY
                        )
                    except Exception:
                        logger.debug(
                            "Failed to send error message to chat %s",
                            chat_id,
                        )

        return wrapper

    return decorator
