from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class PoolSnapshot:
    timestamp: datetime
    pool_address: str
    reserve_usd: Decimal
    volume_usd: Decimal
    block_number: int | None = None


@dataclass(frozen=True)
class SnapshotStats:
    total_snapshots: int
    unique_pools: int
    oldest_snapshot: datetime | None
    newest_snapshot: datetime | None
