from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from apr_tracker.domain.entities.snapshot import SnapshotStats


@dataclass(frozen=True)
class CollectionResult:
    timestamp: datetime
    attempted: int
    written: int
    failed_pools: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionStatus:
    tracked_pools: list[str]
    latest_snapshots: dict[str, datetime | None]
    stats: SnapshotStats


@dataclass(frozen=True)
class SchedulerStatus:
    is_running: bool
    snapshot_interval_minutes: int
    retention_days: int
    next_snapshot_at: datetime | None
    next_cleanup_at: datetime | None
    last_cycle_at: datetime | None
    last_cycle_ok: bool | None


@dataclass(frozen=True)
class CollectionStatusOutput:
    collection: CollectionStatus
    scheduler: SchedulerStatus | None
