from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Sequence

from sqlalchemy import Numeric, bindparam, text
from sqlalchemy.exc import InterfaceError, OperationalError

from apr_tracker.application.ports.snapshot_store_port import SnapshotStorePort
from apr_tracker.domain.entities.snapshot import PoolSnapshot, SnapshotStats
from apr_tracker.domain.exceptions import SnapshotValidationError, StoreUnavailableError
from apr_tracker.domain.services.snapshot_validation import normalize_pool_address, validate_snapshot
from apr_tracker.infrastructure.db.mappers.snapshot_mapper import (
    map_pool_snapshot_to_params,
    map_row_to_pool_snapshot,
    map_row_to_snapshot_stats,
)
from apr_tracker.shared.clock import to_epoch_seconds, to_epoch_seconds_ceil, utc_now


logger = logging.getLogger(__name__)

_CONNECTIVITY_ERRORS = (OperationalError, InterfaceError)

_SELECT_COLUMNS = "pool_address, snapshot_ts, reserve_usd, volume_usd, block_number"

_UPSERT_SQL = text(
    """
    INSERT INTO pool_snapshots (pool_address, snapshot_ts, reserve_usd, volume_usd, block_number)
    VALUES (:pool_address, :snapshot_ts, :reserve_usd, :volume_usd, :block_number)
    ON CONFLICT (pool_address, snapshot_ts)
    DO UPDATE SET
        reserve_usd = EXCLUDED.reserve_usd,
        volume_usd = EXCLUDED.volume_usd,
        block_number = EXCLUDED.block_number,
        updated_at = CURRENT_TIMESTAMP
    """
).bindparams(
    bindparam("reserve_usd", type_=Numeric(38, 12)),
    bindparam("volume_usd", type_=Numeric(38, 12)),
)


class SqlSnapshotRepository(SnapshotStorePort):
    def __init__(self, engine, *, clock: Callable[[], datetime] = utc_now):
        self._engine = engine
        self._clock = clock

    def upsert(self, snapshot: PoolSnapshot) -> PoolSnapshot:
        candidate = validate_snapshot(snapshot)
        try:
            with self._engine.begin() as conn:
                conn.execute(_UPSERT_SQL, map_pool_snapshot_to_params(candidate))
        except _CONNECTIVITY_ERRORS as exc:
            raise _store_unavailable("upsert", exc) from exc
        return candidate

    def upsert_batch(self, snapshots: Sequence[PoolSnapshot]) -> int:
        # Same key twice in one batch: the later candidate wins.
        staged: dict[tuple[str, datetime], PoolSnapshot] = {}
        rejected = 0
        for snapshot in snapshots:
            try:
                candidate = validate_snapshot(snapshot)
            except SnapshotValidationError as exc:
                rejected += 1
                logger.warning("snapshot_repo: rejected_candidate error=%s", exc)
                continue
            staged[(candidate.pool_address, candidate.timestamp)] = candidate

        if not staged:
            return 0

        params = [map_pool_snapshot_to_params(row) for row in staged.values()]
        try:
            with self._engine.begin() as conn:
                conn.execute(_UPSERT_SQL, params)
        except _CONNECTIVITY_ERRORS as exc:
            raise _store_unavailable("upsert_batch", exc) from exc

        logger.info(
            "snapshot_repo: upsert_batch received=%s written=%s rejected=%s",
            len(snapshots),
            len(params),
            rejected,
        )
        return len(params)

    def query(
        self,
        pool_address: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[PoolSnapshot]:
        clauses = ["pool_address = :pool_address"]
        params: dict = {"pool_address": normalize_pool_address(pool_address)}
        if start is not None:
            clauses.append("snapshot_ts >= :start_ts")
            params["start_ts"] = to_epoch_seconds_ceil(start)
        if end is not None:
            clauses.append("snapshot_ts <= :end_ts")
            params["end_ts"] = to_epoch_seconds(end)

        sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM pool_snapshots
            WHERE {" AND ".join(clauses)}
            ORDER BY snapshot_ts DESC
        """
        if limit is not None:
            sql += " LIMIT :limit OFFSET :offset"
            params["limit"] = int(limit)
            params["offset"] = max(0, int(offset))

        rows = self._fetch_all("query", sql, params)
        snapshots = [map_row_to_pool_snapshot(row) for row in rows]
        if limit is None and offset > 0:
            return snapshots[offset:]
        return snapshots

    def latest(self, pool_address: str) -> PoolSnapshot | None:
        sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM pool_snapshots
            WHERE pool_address = :pool_address
            ORDER BY snapshot_ts DESC
            LIMIT 1
        """
        rows = self._fetch_all("latest", sql, {"pool_address": normalize_pool_address(pool_address)})
        if not rows:
            return None
        return map_row_to_pool_snapshot(rows[0])

    def window_slice(
        self,
        pool_address: str,
        *,
        end: datetime,
        window_hours: int,
    ) -> list[PoolSnapshot]:
        start = end - timedelta(hours=window_hours)
        sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM pool_snapshots
            WHERE pool_address = :pool_address
              AND snapshot_ts >= :start_ts
              AND snapshot_ts <= :end_ts
            ORDER BY snapshot_ts ASC
        """
        params = {
            "pool_address": normalize_pool_address(pool_address),
            "start_ts": to_epoch_seconds_ceil(start),
            "end_ts": to_epoch_seconds(end),
        }
        rows = self._fetch_all("window_slice", sql, params)
        return [map_row_to_pool_snapshot(row) for row in rows]

    def purge_older_than(self, days: int) -> int:
        if days < 0:
            raise ValueError("days must be zero or positive.")
        cutoff = self._clock() - timedelta(days=days)
        sql = text("DELETE FROM pool_snapshots WHERE snapshot_ts < :cutoff_ts")
        try:
            with self._engine.begin() as conn:
                result = conn.execute(sql, {"cutoff_ts": to_epoch_seconds(cutoff)})
        except _CONNECTIVITY_ERRORS as exc:
            raise _store_unavailable("purge_older_than", exc) from exc

        deleted = max(0, result.rowcount or 0)
        logger.info(
            "snapshot_repo: purge_older_than days=%s cutoff=%s deleted=%s",
            days,
            cutoff.isoformat(),
            deleted,
        )
        return deleted

    def stats(self) -> SnapshotStats:
        sql = """
            SELECT
              COUNT(*)                     AS total_snapshots,
              COUNT(DISTINCT pool_address) AS unique_pools,
              MIN(snapshot_ts)             AS oldest_ts,
              MAX(snapshot_ts)             AS newest_ts
            FROM pool_snapshots
        """
        rows = self._fetch_all("stats", sql, {})
        return map_row_to_snapshot_stats(rows[0] if rows else None)

    def ping(self) -> None:
        self._fetch_all("ping", "SELECT 1 AS ok", {})

    def _fetch_all(self, action: str, sql: str, params: dict):
        try:
            with self._engine.connect() as conn:
                return conn.execute(text(sql), params).mappings().all()
        except _CONNECTIVITY_ERRORS as exc:
            raise _store_unavailable(action, exc) from exc


def _store_unavailable(action: str, exc: Exception) -> StoreUnavailableError:
    logger.error("snapshot_repo: store_unavailable action=%s error=%s", action, exc)
    return StoreUnavailableError(f"Snapshot store is unavailable ({action}).")
