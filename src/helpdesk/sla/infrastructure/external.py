"""
SLA Scheduling
==============

APScheduler wrapper running the SLA sweep once a day.
"""

from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

SWEEP_JOB_ID = "daily_sla_sweep"


class SLAScheduler:
    """
    Wrapper for APScheduler running the daily SLA sweep.

    Manages the lifecycle of the scheduler and its single job.
    """

    def __init__(self, hour: int = 9, minute: int = 0, timezone: str = "UTC"):
        self.hour = hour
        self.minute = minute
        self.timezone = timezone
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], Awaitable[object]]) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("SLA scheduler already running")
            return

        self._scheduler = AsyncIOScheduler(timezone=self.timezone)

        self._scheduler.add_job(
            job_func,
            CronTrigger(hour=self.hour, minute=self.minute, timezone=self.timezone),
            id=SWEEP_JOB_ID,
            name="Daily SLA Sweep",
            misfire_grace_time=3600,
            coalesce=True,
            max_instances=1,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        next_run = self.next_run_time()
        logger.info(
            "SLA scheduler started",
            extra={
                "hour": self.hour,
                "minute": self.minute,
                "timezone": self.timezone,
                "next_run_time": next_run.isoformat() if next_run else None
            }
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("SLA scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def next_run_time(self):
        """When the sweep will next run, or None if not scheduled."""
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(SWEEP_JOB_ID)
        return job.next_run_time if job else None
