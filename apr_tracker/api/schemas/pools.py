from __future__ import annotations

from pydantic import BaseModel, Field


class SnapshotResponse(BaseModel):
    timestamp: str
    pool_address: str
    reserve_usd: str = Field(..., description="Pool reserves in USD at timestamp.")
    volume_usd: str = Field(..., description="Cumulative trading volume in USD up to timestamp.")
    block_number: int | None = None


class SnapshotListMetaResponse(BaseModel):
    total: int
    limit: int
    offset: int
    start: str | None
    end: str | None


class SnapshotListResponse(BaseModel):
    pool_address: str
    data: list[SnapshotResponse]
    meta: SnapshotListMetaResponse


class AprPointResponse(BaseModel):
    timestamp: str
    apr: str = Field(..., description="Annualized fee APR in percent.")
    window_hours: int
    reserve_usd: str
    volume_usd: str
    fees_usd: str = Field(..., description="Fees earned inside the window.")
    fee_rate: str
    average_reserve_usd: str


class AprSeriesResponse(BaseModel):
    pool_address: str
    window_hours: int
    start: str
    end: str
    data_points: int
    fallback: bool = Field(False, description="True when only the current APR could be computed.")
    data: list[AprPointResponse]
