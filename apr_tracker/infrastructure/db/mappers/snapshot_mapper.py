from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from apr_tracker.domain.entities.snapshot import PoolSnapshot, SnapshotStats
from apr_tracker.shared.clock import from_epoch_seconds, to_epoch_seconds


def map_row_to_pool_snapshot(row: Mapping[str, Any]) -> PoolSnapshot:
    return PoolSnapshot(
        timestamp=from_epoch_seconds(row["snapshot_ts"]),
        pool_address=str(row["pool_address"]),
        reserve_usd=Decimal(str(row["reserve_usd"])) if row["reserve_usd"] is not None else Decimal("0"),
        volume_usd=Decimal(str(row["volume_usd"])) if row["volume_usd"] is not None else Decimal("0"),
        block_number=int(row["block_number"]) if row.get("block_number") is not None else None,
    )


def map_row_to_snapshot_stats(row: Mapping[str, Any] | None) -> SnapshotStats:
    if row is None:
        return SnapshotStats(total_snapshots=0, unique_pools=0, oldest_snapshot=None, newest_snapshot=None)
    return SnapshotStats(
        total_snapshots=int(row["total_snapshots"] or 0),
        unique_pools=int(row["unique_pools"] or 0),
        oldest_snapshot=from_epoch_seconds(row["oldest_ts"]) if row.get("oldest_ts") is not None else None,
        newest_snapshot=from_epoch_seconds(row["newest_ts"]) if row.get("newest_ts") is not None else None,
    )


def map_pool_snapshot_to_params(snapshot: PoolSnapshot) -> dict[str, Any]:
    return {
        "pool_address": snapshot.pool_address,
        "snapshot_ts": to_epoch_seconds(snapshot.timestamp),
        "reserve_usd": snapshot.reserve_usd,
        "volume_usd": snapshot.volume_usd,
        "block_number": snapshot.block_number,
    }
