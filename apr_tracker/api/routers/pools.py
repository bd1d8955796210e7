from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query

from apr_tracker.api.deps import (
    get_apr_series_use_case,
    get_latest_snapshot_use_case,
    get_pool_snapshots_use_case,
)
from apr_tracker.api.schemas.pools import (
    AprPointResponse,
    AprSeriesResponse,
    SnapshotListMetaResponse,
    SnapshotListResponse,
    SnapshotResponse,
)
from apr_tracker.application.dto.apr import GetAprSeriesInput
from apr_tracker.application.dto.snapshots import GetPoolSnapshotsInput
from apr_tracker.application.use_cases.get_apr_series import GetAprSeriesUseCase
from apr_tracker.application.use_cases.get_pool_snapshots import (
    GetLatestSnapshotUseCase,
    GetPoolSnapshotsUseCase,
)
from apr_tracker.domain.entities.snapshot import PoolSnapshot
from apr_tracker.domain.exceptions import InvalidParameterError, StoreUnavailableError

router = APIRouter()


def _dec_to_str(value: Decimal) -> str:
    return format(value.normalize(), "f")


def _iso_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _to_snapshot_response(row: PoolSnapshot) -> SnapshotResponse:
    return SnapshotResponse(
        timestamp=row.timestamp.isoformat(),
        pool_address=row.pool_address,
        reserve_usd=_dec_to_str(row.reserve_usd),
        volume_usd=_dec_to_str(row.volume_usd),
        block_number=row.block_number,
    )


@router.get("/v1/pools/{pool_address}/snapshots", response_model=SnapshotListResponse)
def list_pool_snapshots(
    pool_address: str,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int | None = Query(default=None),
    offset: int = Query(default=0),
    use_case: GetPoolSnapshotsUseCase = Depends(get_pool_snapshots_use_case),
):
    try:
        output = use_case.execute(
            GetPoolSnapshotsInput(
                pool_address=pool_address,
                start=start,
                end=end,
                limit=limit,
                offset=offset,
            )
        )
    except InvalidParameterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return SnapshotListResponse(
        pool_address=output.pool_address,
        data=[_to_snapshot_response(row) for row in output.snapshots],
        meta=SnapshotListMetaResponse(
            total=len(output.snapshots),
            limit=output.limit,
            offset=output.offset,
            start=_iso_or_none(output.start),
            end=_iso_or_none(output.end),
        ),
    )


@router.get("/v1/pools/{pool_address}/snapshots/latest", response_model=SnapshotResponse)
def get_latest_pool_snapshot(
    pool_address: str,
    use_case: GetLatestSnapshotUseCase = Depends(get_latest_snapshot_use_case),
):
    try:
        snapshot = use_case.execute(pool_address=pool_address)
    except InvalidParameterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    if snapshot is None:
        raise HTTPException(status_code=404, detail="No data found for this pool.")
    return _to_snapshot_response(snapshot)


@router.get("/v1/pools/{pool_address}/apr", response_model=AprSeriesResponse)
def get_pool_apr(
    pool_address: str,
    window: int = Query(default=24, description="Window in hours: 1, 12 or 24."),
    start: datetime | None = None,
    end: datetime | None = None,
    use_case: GetAprSeriesUseCase = Depends(get_apr_series_use_case),
):
    try:
        output = use_case.execute(
            GetAprSeriesInput(
                pool_address=pool_address,
                window_hours=window,
                start=start,
                end=end,
            )
        )
    except InvalidParameterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return AprSeriesResponse(
        pool_address=output.pool_address,
        window_hours=output.window_hours,
        start=output.start.isoformat(),
        end=output.end.isoformat(),
        data_points=len(output.points),
        fallback=output.fallback,
        data=[
            AprPointResponse(
                timestamp=point.timestamp.isoformat(),
                apr=_dec_to_str(point.apr),
                window_hours=point.window_hours,
                reserve_usd=_dec_to_str(point.reserve_usd),
                volume_usd=_dec_to_str(point.volume_usd),
                fees_usd=_dec_to_str(point.fees_usd),
                fee_rate=str(point.fee_rate),
                average_reserve_usd=_dec_to_str(point.average_reserve_usd),
            )
            for point in output.points
        ],
    )
