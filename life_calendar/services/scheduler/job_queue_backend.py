"""
JobQueueBackend: RuntimeScheduler wrapping python-telegram-bot's job_queue.

Dispatches ScheduledJob to run_daily(), restricted to the job's weekdays
for WEEKLY schedules.
"""

import logging
from typing import Dict, List, Tuple

from telegram.ext import Application

from .base import RuntimeScheduler, ScheduledJob, ScheduleType

logger = logging.getLogger(__name__)

_EVERY_DAY: Tuple[int, ...] = (0, 1, 2, 3, 4, 5, 6)


def to_ptb_days(weekdays: Tuple[int, ...]) -> Tuple[int, ...]:
    """Convert Python weekdays (0=Monday) to PTB's run_daily days (0=Sunday)."""
    return tuple(sorted((day + 1) % 7 for day in weekdays))


class JobQueueBackend(RuntimeScheduler):
    """In-process scheduler backed by python-telegram-bot's JobQueue."""

    def __init__(self, application: Application) -> None:
        self._application = application
        self._jobs: Dict[str, ScheduledJob] = {}

    @property
    def _job_queue(self):
        jq = self._application.job_queue
        if jq is None:
            raise RuntimeError("JobQueue not available on this Application")
        return jq

    def schedule(self, job: ScheduledJob) -> None:
        if job.schedule_type == ScheduleType.WEEKLY:
            days = to_ptb_days(job.weekdays)
        else:
            days = _EVERY_DAY

        for t in job.times:
            self._job_queue.run_daily(
                job.callback,
                time=t,
                days=days,
                name=self._tag(job.name, t),
            )
            logger.info(
                "Scheduled %s job '%s' at %s (ptb days=%s)",
                job.schedule_type.value,
                job.name,
                t,
                days,
            )

        self._jobs[job.name] = job

    def list_jobs(self) -> List[str]:
        return list(self._jobs.keys())

    @staticmethod
    def _tag(name: str, t) -> str:
        return f"{name}_{t.hour}:{t.minute:02d}"
