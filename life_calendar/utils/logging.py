import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import structlog


def setup_logging(log_level: str = "INFO", log_to_file: bool = True) -> None:
    """Set up logging configuration for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to files in addition to console
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.set_exc_info,
            (
                structlog.processors.JSONRenderer()
                if log_to_file
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # PTB polls getUpdates every few seconds; keep httpx quiet
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if log_to_file:
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)

        app_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "app.log", maxBytes=10 * 1024 * 1024, backupCount=5  # 10MB
        )
        app_handler.setLevel(logging.INFO)
        app_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
            )
        )
        root_logger.addHandler(app_handler)

        # Error-only log file for critical issues
        error_handler = logging.handlers.RotatingFileHandler(
            logs_dir / "errors.log", maxBytes=5 * 1024 * 1024, backupCount=10  # 5MB
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
            )
        )
        root_logger.addHandler(error_handler)


def get_job_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger for scheduled notification jobs.

    Args:
        name: Logger name (defaults to "notification_jobs")
    """
    return structlog.get_logger(name or "notification_jobs")


class JobLogContext:
    """Context manager logging start, finish and outcome counts of a job run.

    Usage:
        with JobLogContext("weekly_statistics") as log_ctx:
            ...
            log_ctx.record(sent=3, failed=1)
    """

    def __init__(self, job_name: str, **context: Any):
        self.job_name = job_name
        self.context = context
        self.logger = get_job_logger()
        self.start_time: Optional[datetime] = None
        self.outcome: Dict[str, Any] = {}

    def record(self, **outcome: Any) -> None:
        self.outcome.update(outcome)

    def __enter__(self) -> "JobLogContext":
        self.start_time = datetime.now()
        self.logger.info(
            "Notification job started",
            job=self.job_name,
            start_time=self.start_time.isoformat(),
            **self.context,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        end_time = datetime.now()
        duration = (end_time - self.start_time).total_seconds()

        if exc_type is not None:
            self.logger.error(
                "Notification job failed",
                job=self.job_name,
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                duration_seconds=duration,
                **self.context,
                **self.outcome,
            )
        else:
            self.logger.info(
                "Notification job finished",
                job=self.job_name,
                duration_seconds=duration,
                **self.context,
                **self.outcome,
            )
