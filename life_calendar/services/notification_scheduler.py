"""
Notification scheduler: weekly statistics and daily greetings.

Each job run scans the whole registry once and dispatches one message per
user. Jobs keep no state between runs. A failure or timeout for one user
is logged and never stops delivery to the others.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from telegram.ext import Application, ContextTypes

from ..core.config import Settings
from ..domain.errors import DeliveryError, PersistenceError
from ..domain.interfaces import MessageDispatcher
from ..domain.repositories import RegisteredUser, UserRegistry
from ..utils.logging import JobLogContext
from . import messages
from .date_validator import parse_date_of_birth
from .life_expectancy import compute_life_stats
from .region_catalog import RegionCatalog
from .scheduler import JobQueueBackend, ScheduledJob, ScheduleType

logger = logging.getLogger(__name__)

WEEKLY_JOB_NAME = "weekly-statistics"
DAILY_JOB_NAME = "daily-greeting"


@dataclass
class JobReport:
    """Outcome of a single job run."""

    job_name: str
    attempted: int = 0
    sent: int = 0
    failed_user_ids: List[int] = field(default_factory=list)
    scan_failed: bool = False

    @property
    def failed(self) -> int:
        return len(self.failed_user_ids)


class NotificationScheduler:
    """Exposes the two job entry points called by the timer harness."""

    def __init__(
        self,
        registry: UserRegistry,
        dispatcher: MessageDispatcher,
        catalog: RegionCatalog,
        dispatch_timeout: float = 10.0,
        max_concurrent_dispatches: int = 10,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._catalog = catalog
        self._dispatch_timeout = dispatch_timeout
        self._max_concurrent = max_concurrent_dispatches
        self._today = today

    async def run_weekly_job(self) -> JobReport:
        """Send freshly computed life statistics to every registered user."""
        return await self._run(WEEKLY_JOB_NAME, self.render_statistics)

    async def run_daily_job(self) -> JobReport:
        """Send the morning greeting to every registered user."""
        return await self._run(DAILY_JOB_NAME, lambda user: messages.MORNING_GREETING)

    def render_statistics(self, user: RegisteredUser) -> str:
        birth_date = parse_date_of_birth(user.date_of_birth)
        if birth_date is None:
            raise ValueError(f"Stored date_of_birth is invalid: {user.date_of_birth!r}")

        years = self._catalog.expectancy_for(user.region)
        stats = compute_life_stats(birth_date, years, reference_date=self._today())
        return messages.format_weekly_statistics(stats)

    async def _run(
        self, job_name: str, render: Callable[[RegisteredUser], str]
    ) -> JobReport:
        report = JobReport(job_name=job_name)

        with JobLogContext(job_name) as log_ctx:
            try:
                users = await self._registry.scan_all()
            except PersistenceError as e:
                logger.error("Job '%s' could not read the user registry: %s", job_name, e)
                report.scan_failed = True
                log_ctx.record(scan_failed=True)
                return report

            if not users:
                logger.debug("Job '%s': no registered users", job_name)
                log_ctx.record(attempted=0, sent=0, failed=0)
                return report

            semaphore = asyncio.Semaphore(self._max_concurrent)
            results = await asyncio.gather(
                *(self._deliver(job_name, user, render, semaphore) for user in users)
            )

            report.attempted = len(users)
            for user, delivered in zip(users, results):
                if delivered:
                    report.sent += 1
                else:
                    report.failed_user_ids.append(user.user_id)

            log_ctx.record(
                attempted=report.attempted, sent=report.sent, failed=report.failed
            )

        return report

    async def _deliver(
        self,
        job_name: str,
        user: RegisteredUser,
        render: Callable[[RegisteredUser], str],
        semaphore: asyncio.Semaphore,
    ) -> bool:
        user_id = user.user_id
        async with semaphore:
            try:
                text = render(user)
                await asyncio.wait_for(
                    self._dispatcher.send_message(user_id, text),
                    timeout=self._dispatch_timeout,
                )
            except asyncio.TimeoutError:
                error = DeliveryError(
                    user_id, f"timed out after {self._dispatch_timeout}s"
                )
                logger.error("Job '%s': %s", job_name, error)
                return False
            except DeliveryError as e:
                logger.error("Job '%s': %s", job_name, e)
                return False
            except Exception as e:
                logger.error(
                    "Job '%s' failed for user %s: %s",
                    job_name,
                    user_id,
                    e,
                    exc_info=True,
                )
                return False

        logger.debug("Job '%s' delivered to user %s", job_name, user_id)
        return True


def setup_notification_jobs(
    application: Application,
    scheduler: NotificationScheduler,
    settings: Settings,
) -> Optional[JobQueueBackend]:
    """Register both notification jobs on the application's job queue."""
    if not application.job_queue:
        logger.warning("Job queue not available, notifications disabled")
        return None

    tz = ZoneInfo(settings.timezone)

    async def _weekly_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await scheduler.run_weekly_job()

    async def _daily_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await scheduler.run_daily_job()

    backend = JobQueueBackend(application)
    backend.schedule(
        ScheduledJob(
            name=WEEKLY_JOB_NAME,
            callback=_weekly_callback,
            schedule_type=ScheduleType.WEEKLY,
            times=[
                time(
                    hour=settings.weekly_notification_hour,
                    minute=settings.weekly_notification_minute,
                    tzinfo=tz,
                )
            ],
            weekdays=(settings.weekly_notification_day,),
        )
    )
    backend.schedule(
        ScheduledJob(
            name=DAILY_JOB_NAME,
            callback=_daily_callback,
            schedule_type=ScheduleType.DAILY,
            times=[
                time(
                    hour=settings.daily_greeting_hour,
                    minute=settings.daily_greeting_minute,
                    tzinfo=tz,
                )
            ],
        )
    )

    logger.info("Notification jobs configured: %s", ", ".join(backend.list_jobs()))
    return backend
