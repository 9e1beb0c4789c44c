"""Background scheduler for score synchronization.

Uses cron expressions for scheduling:
- daily sync at daily_sync_hour (UTC)
- realtime sync every realtime_frequency minutes, when enabled

Each task runs in its own asyncio event loop on the scheduler thread, so
runs never overlap.

Integrates with FastAPI lifespan for clean startup/shutdown.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from croniter import croniter

from pronohub.consumers.runs import run_daily_sync, run_realtime_sync
from pronohub.utilities.tz import now_utc

logger = logging.getLogger(__name__)


def daily_cron_expression(hour: str) -> str:
    """Cron expression for an "HH:MM" time of day."""
    hh, _, mm = hour.partition(":")
    return f"{int(mm or 0)} {int(hh)} * * *"


def realtime_cron_expression(frequency_minutes: int) -> str:
    return f"*/{max(1, frequency_minutes)} * * * *"


@dataclass
class ScheduledJob:
    """A named task bound to a cron expression."""

    name: str
    cron_expression: str
    task: Callable[[], dict]
    next_run: datetime | None = None
    last_run: datetime | None = None

    def schedule_next(self, now: datetime) -> datetime:
        self.next_run = croniter(self.cron_expression, now).get_next(datetime)
        return self.next_run

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "cron_expression": self.cron_expression,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "next_run": self.next_run.isoformat() if self.next_run else None,
        }


class SyncScheduler:
    """Background scheduler using cron expressions.

    Usage:
        scheduler = SyncScheduler(get_db, daily_cron="0 6 * * *", realtime_cron="*/2 * * * *")
        scheduler.start()
        # ... application runs ...
        scheduler.stop()
    """

    def __init__(
        self,
        db_factory: Any,
        daily_cron: str | None = "0 6 * * *",
        realtime_cron: str | None = None,
    ):
        """Initialize the scheduler.

        Args:
            db_factory: Factory function returning database connection
            daily_cron: Cron expression for the daily sync (None = disabled)
            realtime_cron: Cron expression for the realtime sync (None = disabled)
        """
        self._db_factory = db_factory
        self._jobs: list[ScheduledJob] = []
        if daily_cron:
            self._jobs.append(ScheduledJob("daily_sync", daily_cron, self._task_daily_sync))
        if realtime_cron:
            self._jobs.append(ScheduledJob("realtime", realtime_cron, self._task_realtime_sync))

        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running and self._thread is not None and self._thread.is_alive()

    @property
    def jobs(self) -> list[ScheduledJob]:
        return list(self._jobs)

    def start(self) -> bool:
        """Start the scheduler.

        Returns:
            True if started, False if already running, nothing to schedule
            or an invalid cron expression
        """
        if self.is_running:
            logger.warning("[SCHEDULER] Already running")
            return False
        if not self._jobs:
            logger.info("[SCHEDULER] No job enabled")
            return False

        for job in self._jobs:
            if not croniter.is_valid(job.cron_expression):
                logger.error(
                    "[SCHEDULER] Invalid cron expression for %s: '%s'",
                    job.name,
                    job.cron_expression,
                )
                return False

        self._stop_event.clear()
        self._running = True
        self._thread = threading.Thread(
            target=self._run_loop,
            name="sync-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "[SCHEDULER] Started (%s)",
            ", ".join(f"{j.name}: {j.cron_expression}" for j in self._jobs),
        )
        return True

    def stop(self, timeout: float = 30.0) -> bool:
        """Stop the scheduler gracefully.

        Returns:
            True if stopped, False if the thread did not exit in time
        """
        if not self.is_running:
            return True

        logger.info("[SCHEDULER] Stopping...")
        self._stop_event.set()
        self._running = False

        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("[SCHEDULER] Thread did not stop in time")
                return False

        logger.info("[SCHEDULER] Stopped")
        return True

    def run_once(self, name: str) -> dict:
        """Run one job immediately (manual trigger and tests)."""
        for job in self._jobs:
            if job.name == name:
                return self._run_job(job)
        raise ValueError(f"Unknown job: {name}")

    def _run_loop(self) -> None:
        """Main scheduler loop - runs in background thread."""
        now = now_utc()
        for job in self._jobs:
            job.schedule_next(now)

        while not self._stop_event.is_set():
            upcoming = min(self._jobs, key=lambda j: j.next_run)
            wait_seconds = (upcoming.next_run - now_utc()).total_seconds()
            logger.debug(
                "[SCHEDULER] Next run: %s at %s (%.0fs)",
                upcoming.name,
                upcoming.next_run.strftime("%Y-%m-%d %H:%M:%S"),
                wait_seconds,
            )

            if wait_seconds > 0 and self._stop_event.wait(wait_seconds):
                return

            now = now_utc()
            for job in self._jobs:
                if job.next_run <= now:
                    self._run_job(job)
                    job.schedule_next(now_utc())

    def _run_job(self, job: ScheduledJob) -> dict:
        job.last_run = now_utc()
        try:
            return job.task()
        except Exception as e:
            # Scheduler thread must survive any task failure
            logger.exception("[SCHEDULER] %s failed: %s", job.name, e)
            return {"success": False, "error": str(e)}

    def _task_daily_sync(self) -> dict:
        return asyncio.run(run_daily_sync(self._db_factory)).to_dict()

    def _task_realtime_sync(self) -> dict:
        return asyncio.run(run_realtime_sync(self._db_factory)).to_dict()


# =============================================================================
# MODULE-LEVEL FUNCTIONS
# =============================================================================

_scheduler: SyncScheduler | None = None


def start_scheduler(db_factory: Any) -> bool:
    """Start the global scheduler from the stored settings.

    Returns:
        True if started, False if already running or nothing is enabled
    """
    global _scheduler

    from pronohub.database.settings import get_all_settings

    with db_factory() as conn:
        settings = get_all_settings(conn)

    if _scheduler and _scheduler.is_running:
        logger.warning("[SCHEDULER] Already running")
        return False

    daily = daily_cron_expression(settings.daily_sync.hour) if settings.daily_sync.enabled else None
    realtime = (
        realtime_cron_expression(settings.realtime.frequency_minutes)
        if settings.realtime.enabled
        else None
    )

    _scheduler = SyncScheduler(db_factory, daily_cron=daily, realtime_cron=realtime)
    return _scheduler.start()


def stop_scheduler(timeout: float = 30.0) -> bool:
    global _scheduler

    if not _scheduler:
        return True

    result = _scheduler.stop(timeout)
    _scheduler = None
    return result


def get_scheduler_status() -> dict:
    """Get status of the global scheduler."""
    if not _scheduler:
        return {"running": False, "jobs": []}

    return {
        "running": _scheduler.is_running,
        "jobs": [job.to_dict() for job in _scheduler.jobs],
    }
