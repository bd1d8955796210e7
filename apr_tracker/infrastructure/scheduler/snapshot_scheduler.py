from __future__ import annotations

import logging
from datetime import datetime
from threading import Lock
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from apr_tracker.application.dto.collection import CollectionResult, SchedulerStatus
from apr_tracker.application.ports.collection_scheduler_port import CollectionSchedulerPort
from apr_tracker.application.services.collection_orchestrator import CollectionOrchestrator
from apr_tracker.shared.clock import utc_now


logger = logging.getLogger(__name__)


SNAPSHOT_JOB_ID = "pool_snapshot_collection"
CLEANUP_JOB_ID = "pool_snapshot_cleanup"


def _default_scheduler_factory() -> BackgroundScheduler:
    return BackgroundScheduler(timezone="UTC")


class SnapshotScheduler(CollectionSchedulerPort):
    """Drives the orchestrator on a fixed cadence.

    Each instance owns its APScheduler instance and locks, so several can
    coexist (tests) and ``stop()`` leaves nothing behind. Collection cycles never
    overlap: a periodic tick that finds a cycle running is skipped, while a
    manual trigger waits for it.
    """

    def __init__(
        self,
        *,
        orchestrator: CollectionOrchestrator,
        snapshot_interval_minutes: int = 60,
        retention_days: int = 90,
        cleanup_hour_utc: int = 2,
        scheduler_factory: Callable[[], BackgroundScheduler] = _default_scheduler_factory,
        clock: Callable[[], datetime] = utc_now,
    ):
        if snapshot_interval_minutes <= 0:
            raise ValueError("snapshot_interval_minutes must be positive.")
        self._orchestrator = orchestrator
        self._snapshot_interval_minutes = snapshot_interval_minutes
        self._retention_days = retention_days
        self._cleanup_hour_utc = cleanup_hour_utc
        self._scheduler_factory = scheduler_factory
        self._clock = clock
        self._scheduler: BackgroundScheduler | None = None
        self._state_lock = Lock()
        self._cycle_lock = Lock()
        self._last_cycle_at: datetime | None = None
        self._last_cycle_ok: bool | None = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def bootstrap(self) -> None:
        try:
            self._orchestrator.initialize_history()
        except Exception as exc:
            logger.exception("snapshot_scheduler: initialize_history_failed error=%s", exc)
        try:
            self.trigger_now()
        except Exception as exc:
            logger.exception("snapshot_scheduler: initial_snapshot_failed error=%s", exc)
        self.start()

    def start(self) -> bool:
        with self._state_lock:
            if self._scheduler is not None:
                logger.info("snapshot_scheduler: start_ignored reason=already_running")
                return False

            scheduler = self._scheduler_factory()
            scheduler.add_job(
                self._run_snapshot_job,
                trigger=IntervalTrigger(minutes=self._snapshot_interval_minutes, timezone="UTC"),
                id=SNAPSHOT_JOB_ID,
                name="Pool snapshot collection",
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            scheduler.add_job(
                self._run_cleanup_job,
                trigger=CronTrigger(hour=self._cleanup_hour_utc, minute=0, timezone="UTC"),
                id=CLEANUP_JOB_ID,
                name="Pool snapshot retention cleanup",
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            scheduler.start()
            self._scheduler = scheduler

        logger.info(
            "snapshot_scheduler: started interval_minutes=%s cleanup_hour_utc=%s retention_days=%s",
            self._snapshot_interval_minutes,
            self._cleanup_hour_utc,
            self._retention_days,
        )
        return True

    def stop(self) -> bool:
        with self._state_lock:
            scheduler = self._scheduler
            if scheduler is None:
                logger.info("snapshot_scheduler: stop_ignored reason=not_running")
                return False
            self._scheduler = None

        scheduler.shutdown(wait=False)
        logger.info("snapshot_scheduler: stopped")
        return True

    def trigger_now(self) -> CollectionResult:
        logger.info("snapshot_scheduler: manual_trigger")
        with self._cycle_lock:
            return self._run_cycle()

    def status(self) -> SchedulerStatus:
        scheduler = self._scheduler
        return SchedulerStatus(
            is_running=scheduler is not None,
            snapshot_interval_minutes=self._snapshot_interval_minutes,
            retention_days=self._retention_days,
            next_snapshot_at=_next_run_time(scheduler, SNAPSHOT_JOB_ID),
            next_cleanup_at=_next_run_time(scheduler, CLEANUP_JOB_ID),
            last_cycle_at=self._last_cycle_at,
            last_cycle_ok=self._last_cycle_ok,
        )

    def _run_snapshot_job(self) -> None:
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("snapshot_scheduler: tick_skipped reason=cycle_in_progress")
            return
        try:
            self._run_cycle()
        except Exception as exc:
            # The next tick is the retry.
            logger.exception("snapshot_scheduler: cycle_failed error=%s", exc)
        finally:
            self._cycle_lock.release()

    def _run_cleanup_job(self) -> None:
        try:
            self._orchestrator.cleanup(self._retention_days)
        except Exception as exc:
            logger.exception("snapshot_scheduler: cleanup_failed error=%s", exc)

    def _run_cycle(self) -> CollectionResult:
        self._last_cycle_at = self._clock()
        try:
            result = self._orchestrator.take_snapshot()
        except Exception:
            self._last_cycle_ok = False
            raise
        self._last_cycle_ok = True
        return result


def _next_run_time(scheduler: BackgroundScheduler | None, job_id: str) -> datetime | None:
    if scheduler is None:
        return None
    job = scheduler.get_job(job_id)
    if job is None:
        return None
    return job.next_run_time
