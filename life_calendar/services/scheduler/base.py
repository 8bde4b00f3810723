"""
Scheduler base types and abstract interface.

ScheduleType / ScheduledJob define what to run and when.
RuntimeScheduler is the ABC for in-process backends (e.g. JobQueueBackend).
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import time
from typing import Any, Callable, Coroutine, List, Tuple


class ScheduleType(enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


@dataclass
class ScheduledJob:
    """Describes a job to be scheduled.

    weekdays uses Python's convention (0=Monday, 6=Sunday) and is required
    for WEEKLY jobs only.
    """

    name: str
    callback: Callable[..., Coroutine[Any, Any, None]]
    schedule_type: ScheduleType
    times: List[time] = field(default_factory=list)
    weekdays: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        if not self.times:
            raise ValueError(f"times required for {self.schedule_type.name} schedule")
        if self.schedule_type == ScheduleType.WEEKLY:
            if not self.weekdays:
                raise ValueError("weekdays required for WEEKLY schedule")
            if any(not 0 <= day <= 6 for day in self.weekdays):
                raise ValueError(f"weekdays must be 0-6 (0=Monday): {self.weekdays}")
        if self.schedule_type == ScheduleType.DAILY and self.weekdays:
            raise ValueError("DAILY schedule should not have weekdays")


class RuntimeScheduler(ABC):
    """ABC for in-process job schedulers."""

    @abstractmethod
    def schedule(self, job: ScheduledJob) -> None:
        """Register a job for execution."""

    @abstractmethod
    def list_jobs(self) -> List[str]:
        """Return names of all registered jobs."""
