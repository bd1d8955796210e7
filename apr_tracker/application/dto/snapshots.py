from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from apr_tracker.domain.entities.snapshot import PoolSnapshot


@dataclass(frozen=True)
class GetPoolSnapshotsInput:
    pool_address: str
    start: datetime | None = None
    end: datetime | None = None
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True)
class GetPoolSnapshotsOutput:
    pool_address: str
    snapshots: list[PoolSnapshot]
    limit: int
    offset: int
    start: datetime | None
    end: datetime | None
