from __future__ import annotations

from pydantic import BaseModel


class CollectionTriggerResponse(BaseModel):
    success: bool
    timestamp: str
    attempted: int
    written: int
    failed_pools: list[str]


class SnapshotStatsResponse(BaseModel):
    total_snapshots: int
    unique_pools: int
    oldest_snapshot: str | None
    newest_snapshot: str | None


class SchedulerStatusResponse(BaseModel):
    is_running: bool
    snapshot_interval_minutes: int
    retention_days: int
    next_snapshot_at: str | None
    next_cleanup_at: str | None
    last_cycle_at: str | None
    last_cycle_ok: bool | None


class CollectionStatusResponse(BaseModel):
    tracked_pools: list[str]
    latest_snapshots: dict[str, str | None]
    stats: SnapshotStatsResponse
    scheduler: SchedulerStatusResponse | None


class HealthResponse(BaseModel):
    status: str
    store: str
