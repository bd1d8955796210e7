from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from apr_tracker.api.deps import (
    get_collection_status_use_case,
    get_optional_snapshot_store,
    get_trigger_collection_use_case,
)
from apr_tracker.api.schemas.collection import (
    CollectionStatusResponse,
    CollectionTriggerResponse,
    HealthResponse,
    SchedulerStatusResponse,
    SnapshotStatsResponse,
)
from apr_tracker.application.ports.snapshot_store_port import SnapshotStorePort
from apr_tracker.application.use_cases.collection import (
    GetCollectionStatusUseCase,
    TriggerCollectionUseCase,
)
from apr_tracker.domain.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()


def _iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@router.post("/v1/collection/trigger", response_model=CollectionTriggerResponse)
def trigger_collection(
    use_case: TriggerCollectionUseCase = Depends(get_trigger_collection_use_case),
):
    try:
        result = use_case.execute()
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("collection_router: trigger_failed error=%s", exc)
        raise HTTPException(status_code=503, detail="Snapshot collection failed.") from exc

    return CollectionTriggerResponse(
        success=True,
        timestamp=result.timestamp.isoformat(),
        attempted=result.attempted,
        written=result.written,
        failed_pools=list(result.failed_pools),
    )


@router.get("/v1/collection/status", response_model=CollectionStatusResponse)
def collection_status(
    use_case: GetCollectionStatusUseCase = Depends(get_collection_status_use_case),
):
    try:
        output = use_case.execute()
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    collection = output.collection
    scheduler = output.scheduler
    return CollectionStatusResponse(
        tracked_pools=list(collection.tracked_pools),
        latest_snapshots={
            pool: _iso_or_none(ts) for pool, ts in collection.latest_snapshots.items()
        },
        stats=SnapshotStatsResponse(
            total_snapshots=collection.stats.total_snapshots,
            unique_pools=collection.stats.unique_pools,
            oldest_snapshot=_iso_or_none(collection.stats.oldest_snapshot),
            newest_snapshot=_iso_or_none(collection.stats.newest_snapshot),
        ),
        scheduler=(
            SchedulerStatusResponse(
                is_running=scheduler.is_running,
                snapshot_interval_minutes=scheduler.snapshot_interval_minutes,
                retention_days=scheduler.retention_days,
                next_snapshot_at=_iso_or_none(scheduler.next_snapshot_at),
                next_cleanup_at=_iso_or_none(scheduler.next_cleanup_at),
                last_cycle_at=_iso_or_none(scheduler.last_cycle_at),
                last_cycle_ok=scheduler.last_cycle_ok,
            )
            if scheduler is not None
            else None
        ),
    )


@router.get("/health", response_model=HealthResponse)
def health(
    store: SnapshotStorePort | None = Depends(get_optional_snapshot_store),
):
    if store is None:
        return HealthResponse(status="degraded", store="not_configured")
    try:
        store.ping()
    except StoreUnavailableError:
        return HealthResponse(status="degraded", store="unavailable")
    return HealthResponse(status="ok", store="ok")
