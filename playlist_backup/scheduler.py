"""
Recurring backup timer.

The scheduler owns at most one interval job on an APScheduler background
scheduler. Whenever a new Settings value is published it re-evaluates:

    enable_interval_backup and interval_minutes > 0  ->  ARMED
    anything else                                    ->  DISARMED

While ARMED the job calls perform_backup(Trigger.INTERVAL) every
interval_minutes, starting one full interval after arming.

On host shutdown, shutdown() runs one perform_backup(Trigger.SHUTDOWN) when
backup_on_shutdown is set and then releases the background scheduler, also
when the backup raises.

Usage:
    scheduler = Scheduler(orchestrator, lambda: store.current)
    store.subscribe(scheduler.apply)
    scheduler.apply(store.current)
    try:
        ...  # host runs
    finally:
        scheduler.shutdown()
"""

import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from playlist_backup.core.config import Settings
from playlist_backup.core.logger import get_logger
from playlist_backup.export.orchestrator import BackupOrchestrator, Trigger

logger = get_logger(__name__)


SECONDS_PER_MINUTE = 60.0
INTERVAL_JOB_ID = "interval-backup"


class SchedulerState(str, Enum):
    DISARMED = "disarmed"
    ARMED = "armed"


class Scheduler:
    """
    Single recurring timer driving interval backups.

    Attributes:
        orchestrator: Runs the backups.
        seconds_per_minute: Length of one interval minute in seconds.
                            Only changed by tests.
    """

    def __init__(
        self,
        orchestrator: BackupOrchestrator,
        settings_provider: Callable[[], Settings],
        seconds_per_minute: float = SECONDS_PER_MINUTE
    ) -> None:
        self.orchestrator = orchestrator
        self.seconds_per_minute = seconds_per_minute
        self._settings_provider = settings_provider
        self._scheduler = BackgroundScheduler(timezone="UTC")
        self._lock = threading.Lock()
        self._closed = False

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            if self._scheduler.get_job(INTERVAL_JOB_ID) is not None:
                return SchedulerState.ARMED
            return SchedulerState.DISARMED

    def apply(self, settings: Settings) -> SchedulerState:
        """
        Re-arm or disarm the timer for a newly published Settings value.

        The existing job is always removed, so a changed interval takes
        effect from now.

        Returns:
            The resulting state.
        """
        with self._lock:
            self._remove_job()

            if self._closed:
                logger.debug("Scheduler is shut down, ignoring settings change")
                return SchedulerState.DISARMED

            if not settings.interval_armed:
                logger.debug("Interval backup disarmed")
                return SchedulerState.DISARMED

            interval = timedelta(seconds=settings.interval_minutes * self.seconds_per_minute)
            trigger = IntervalTrigger(
                seconds=interval.total_seconds(),
                start_date=datetime.now(timezone.utc) + interval,
                timezone="UTC",
            )

            if not self._scheduler.running:
                self._scheduler.start()

            self._scheduler.add_job(
                self._run_interval_backup,
                trigger=trigger,
                id=INTERVAL_JOB_ID,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )

        logger.info(f"Interval backup armed: every {settings.interval_minutes} minutes")
        return SchedulerState.ARMED

    def shutdown(self) -> None:
        """
        Host shutdown hook.

        Runs the shutdown backup if configured, then releases the timer.
        Safe to call more than once; only the first call does anything.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._remove_job()

        try:
            if self._settings_provider().backup_on_shutdown:
                self.orchestrator.perform_backup(Trigger.SHUTDOWN)
        finally:
            with self._lock:
                if self._scheduler.running:
                    self._scheduler.shutdown(wait=True)
            logger.debug("Scheduler released")

    def __enter__(self) -> "Scheduler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _run_interval_backup(self) -> None:
        try:
            self.orchestrator.perform_backup(Trigger.INTERVAL)
        except Exception:
            logger.exception("Interval backup failed")

    def _remove_job(self) -> None:
        # Caller holds self._lock
        if self._scheduler.get_job(INTERVAL_JOB_ID) is not None:
            self._scheduler.remove_job(INTERVAL_JOB_ID)
