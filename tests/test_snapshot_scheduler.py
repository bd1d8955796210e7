from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from apr_tracker.application.dto.collection import CollectionResult
from apr_tracker.domain.exceptions import StoreUnavailableError
from apr_tracker.infrastructure.scheduler.snapshot_scheduler import (
    CLEANUP_JOB_ID,
    SNAPSHOT_JOB_ID,
    SnapshotScheduler,
)


NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class FakeBackgroundScheduler:
    def __init__(self):
        self.jobs: dict[str, SimpleNamespace] = {}
        self.started = False
        self.shutdown_calls: list[bool] = []

    def add_job(self, func, *, trigger, id, name, max_instances, coalesce, replace_existing):
        self.jobs[id] = SimpleNamespace(
            func=func,
            trigger=trigger,
            max_instances=max_instances,
            coalesce=coalesce,
            next_run_time=NOW,
        )

    def start(self):
        self.started = True

    def shutdown(self, wait: bool = True):
        self.shutdown_calls.append(wait)

    def get_job(self, job_id):
        return self.jobs.get(job_id)


class FakeOrchestrator:
    def __init__(self, *, fail_snapshot: bool = False):
        self.fail_snapshot = fail_snapshot
        self.snapshot_calls = 0
        self.initialize_calls = 0
        self.cleanup_calls: list[int] = []

    def initialize_history(self):
        self.initialize_calls += 1
        return {}

    def take_snapshot(self) -> CollectionResult:
        self.snapshot_calls += 1
        if self.fail_snapshot:
            raise StoreUnavailableError("Snapshot store is unavailable (upsert_batch).")
        return CollectionResult(timestamp=NOW, attempted=2, written=2)

    def cleanup(self, retention_days: int) -> int:
        self.cleanup_calls.append(retention_days)
        return 0


def _scheduler(orchestrator: FakeOrchestrator, created: list[FakeBackgroundScheduler]) -> SnapshotScheduler:
    def factory():
        instance = FakeBackgroundScheduler()
        created.append(instance)
        return instance

    return SnapshotScheduler(
        orchestrator=orchestrator,
        snapshot_interval_minutes=15,
        retention_days=30,
        cleanup_hour_utc=3,
        scheduler_factory=factory,
        clock=lambda: NOW,
    )


def test_start_registers_both_jobs_once():
    created: list[FakeBackgroundScheduler] = []
    scheduler = _scheduler(FakeOrchestrator(), created)

    assert scheduler.start() is True
    assert scheduler.start() is False

    assert len(created) == 1
    jobs = created[0].jobs
    assert set(jobs) == {SNAPSHOT_JOB_ID, CLEANUP_JOB_ID}
    assert all(job.max_instances == 1 and job.coalesce for job in jobs.values())
    assert created[0].started
    assert scheduler.is_running


def test_stop_shuts_down_and_is_idempotent():
    created: list[FakeBackgroundScheduler] = []
    scheduler = _scheduler(FakeOrchestrator(), created)
    scheduler.start()

    assert scheduler.stop() is True
    assert scheduler.stop() is False
    assert created[0].shutdown_calls == [False]
    assert not scheduler.is_running


def test_stop_then_start_creates_fresh_scheduler():
    created: list[FakeBackgroundScheduler] = []
    scheduler = _scheduler(FakeOrchestrator(), created)
    scheduler.start()
    scheduler.stop()
    scheduler.start()

    assert len(created) == 2


def test_trigger_now_runs_cycle_and_records_outcome():
    orchestrator = FakeOrchestrator()
    scheduler = _scheduler(orchestrator, [])

    result = scheduler.trigger_now()

    assert result.written == 2
    assert orchestrator.snapshot_calls == 1
    status = scheduler.status()
    assert status.last_cycle_at == NOW
    assert status.last_cycle_ok is True


def test_trigger_now_propagates_failure():
    scheduler = _scheduler(FakeOrchestrator(fail_snapshot=True), [])

    with pytest.raises(StoreUnavailableError):
        scheduler.trigger_now()
    assert scheduler.status().last_cycle_ok is False


def test_periodic_tick_is_skipped_while_cycle_in_progress():
    orchestrator = FakeOrchestrator()
    scheduler = _scheduler(orchestrator, [])

    scheduler._cycle_lock.acquire()
    try:
        scheduler._run_snapshot_job()
    finally:
        scheduler._cycle_lock.release()

    assert orchestrator.snapshot_calls == 0


def test_periodic_tick_swallows_cycle_failure():
    orchestrator = FakeOrchestrator(fail_snapshot=True)
    scheduler = _scheduler(orchestrator, [])

    scheduler._run_snapshot_job()

    assert orchestrator.snapshot_calls == 1
    assert scheduler._cycle_lock.acquire(blocking=False)
    scheduler._cycle_lock.release()


def test_cleanup_job_uses_retention_days():
    orchestrator = FakeOrchestrator()
    scheduler = _scheduler(orchestrator, [])

    scheduler._run_cleanup_job()

    assert orchestrator.cleanup_calls == [30]


def test_bootstrap_initializes_snapshots_and_starts():
    orchestrator = FakeOrchestrator(fail_snapshot=True)
    created: list[FakeBackgroundScheduler] = []
    scheduler = _scheduler(orchestrator, created)

    scheduler.bootstrap()

    assert orchestrator.initialize_calls == 1
    assert orchestrator.snapshot_calls == 1
    assert scheduler.is_running
    scheduler.stop()


def test_status_reports_next_runs_only_while_running():
    scheduler = _scheduler(FakeOrchestrator(), [])
    idle = scheduler.status()
    assert idle.is_running is False
    assert idle.next_snapshot_at is None

    scheduler.start()
    running = scheduler.status()
    assert running.is_running is True
    assert running.snapshot_interval_minutes == 15
    assert running.retention_days == 30
    assert running.next_snapshot_at == NOW
    assert running.next_cleanup_at == NOW
    scheduler.stop()


def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        SnapshotScheduler(orchestrator=FakeOrchestrator(), snapshot_interval_minutes=0)
