import logging
from typing import Optional

from telegram.ext import Application, MessageHandler, filters

from ..core.config import Settings
from ..core.database import close_database, init_database
from ..domain.repositories import UserRegistry
from ..infrastructure.repositories import SqlAlchemyUserRegistry
from ..services.notification_scheduler import (
    NotificationScheduler,
    setup_notification_jobs,
)
from ..services.onboarding import OnboardingStateMachine
from ..services.region_catalog import RegionCatalog
from ..utils.error_reporting import log_error_summary
from .adapters import TelegramMessageDispatcher
from .message_handlers import ONBOARDING_KEY, handle_text_message

logger = logging.getLogger(__name__)

SCHEDULER_KEY = "notification_scheduler"


async def _post_init(application: Application) -> None:
    await init_database(application.bot_data["database_url"])


async def _post_shutdown(application: Application) -> None:
    log_error_summary()
    await close_database()


def build_application(
    settings: Settings,
    catalog: RegionCatalog,
    registry: Optional[UserRegistry] = None,
) -> Application:
    """Build the python-telegram-bot Application with handlers and jobs."""
    if not settings.telegram_bot_token:
        raise ValueError("Telegram bot token is required")

    application = (
        Application.builder()
        .token(settings.telegram_bot_token)
        .post_init(_post_init)
        .post_shutdown(_post_shutdown)
        .build()
    )

    registry = registry or SqlAlchemyUserRegistry()
    dispatcher = TelegramMessageDispatcher(application.bot)

    application.bot_data["database_url"] = settings.database_url
    application.bot_data[ONBOARDING_KEY] = OnboardingStateMachine(
        catalog=catalog,
        registry=registry,
        dispatcher=dispatcher,
        restart_command=settings.restart_command,
    )

    scheduler = NotificationScheduler(
        registry=registry,
        dispatcher=dispatcher,
        catalog=catalog,
        dispatch_timeout=settings.dispatch_timeout_seconds,
        max_concurrent_dispatches=settings.max_concurrent_dispatches,
    )
    application.bot_data[SCHEDULER_KEY] = scheduler

    # Commands are plain text to the onboarding flow ("/start" included); edits are ignored
    application.add_handler(
        MessageHandler(filters.TEXT & filters.UpdateType.MESSAGE, handle_text_message)
    )

    setup_notification_jobs(application, scheduler, settings)

    logger.info("Telegram bot application configured")
    return application
