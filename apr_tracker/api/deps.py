from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from apr_tracker.application.ports.pool_data_source_port import PoolDataSourcePort
from apr_tracker.application.services.apr_engine import AprEngine
from apr_tracker.application.services.collection_orchestrator import CollectionOrchestrator
from apr_tracker.application.use_cases.collection import (
    GetCollectionStatusUseCase,
    TriggerCollectionUseCase,
)
from apr_tracker.application.use_cases.get_apr_series import GetAprSeriesUseCase
from apr_tracker.application.use_cases.get_pool_snapshots import (
    GetLatestSnapshotUseCase,
    GetPoolSnapshotsUseCase,
)
from apr_tracker.infrastructure.clients.pool_data_source_factory import build_pool_data_source
from apr_tracker.infrastructure.db.engine import get_engine
from apr_tracker.infrastructure.db.repositories.snapshot_repository import SqlSnapshotRepository
from apr_tracker.infrastructure.scheduler.snapshot_scheduler import SnapshotScheduler
from apr_tracker.shared.config import get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=503, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


def get_snapshot_store() -> SqlSnapshotRepository:
    return SqlSnapshotRepository(_get_db_engine())


def get_optional_snapshot_store() -> SqlSnapshotRepository | None:
    if not get_settings().postgres_dsn:
        return None
    return get_snapshot_store()


@lru_cache(maxsize=1)
def _get_pool_data_source() -> PoolDataSourcePort:
    return build_pool_data_source(get_settings())


def get_collection_orchestrator() -> CollectionOrchestrator:
    settings = get_settings()
    return CollectionOrchestrator(
        snapshot_store=get_snapshot_store(),
        pool_data_source=_get_pool_data_source(),
        tracked_pools=settings.tracked_pools,
        initial_hours_back=settings.initial_hours_back,
        max_workers=settings.collection_max_workers,
    )


@lru_cache(maxsize=1)
def get_snapshot_scheduler() -> SnapshotScheduler:
    settings = get_settings()
    return SnapshotScheduler(
        orchestrator=get_collection_orchestrator(),
        snapshot_interval_minutes=settings.snapshot_interval_minutes,
        retention_days=settings.retention_days,
        cleanup_hour_utc=settings.cleanup_hour_utc,
    )


def get_pool_snapshots_use_case() -> GetPoolSnapshotsUseCase:
    return GetPoolSnapshotsUseCase(snapshot_store=get_snapshot_store())


def get_latest_snapshot_use_case() -> GetLatestSnapshotUseCase:
    return GetLatestSnapshotUseCase(snapshot_store=get_snapshot_store())


def get_apr_series_use_case() -> GetAprSeriesUseCase:
    return GetAprSeriesUseCase(apr_engine=AprEngine(snapshot_store=get_snapshot_store()))


def get_trigger_collection_use_case() -> TriggerCollectionUseCase:
    return TriggerCollectionUseCase(scheduler=get_snapshot_scheduler())


def get_collection_status_use_case() -> GetCollectionStatusUseCase:
    return GetCollectionStatusUseCase(
        orchestrator=get_collection_orchestrator(),
        scheduler=get_snapshot_scheduler(),
    )
