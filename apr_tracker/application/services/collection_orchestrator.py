from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Sequence

from apr_tracker.application.dto.collection import CollectionResult, CollectionStatus
from apr_tracker.application.ports.pool_data_source_port import PoolDataSourcePort
from apr_tracker.application.ports.snapshot_store_port import SnapshotStorePort
from apr_tracker.domain.entities.pool_state import PoolState
from apr_tracker.domain.entities.snapshot import PoolSnapshot
from apr_tracker.domain.exceptions import UpstreamUnavailableError
from apr_tracker.domain.services.backfill import synthesize_backfill
from apr_tracker.domain.services.snapshot_validation import normalize_pool_address
from apr_tracker.shared.clock import utc_now


logger = logging.getLogger(__name__)


class CollectionOrchestrator:
    """Keeps the snapshot store populated from the pool data source.

    Per-pool upstream failures are absorbed here. Store failures are not: they
    propagate so the caller can abandon the cycle.
    """

    def __init__(
        self,
        *,
        snapshot_store: SnapshotStorePort,
        pool_data_source: PoolDataSourcePort,
        tracked_pools: Sequence[str],
        initial_hours_back: int = 48,
        max_workers: int = 4,
        clock: Callable[[], datetime] = utc_now,
        rng: random.Random | None = None,
    ):
        pools = [normalize_pool_address(pool) for pool in tracked_pools if normalize_pool_address(pool)]
        if not pools:
            raise ValueError("At least one tracked pool is required.")
        self._snapshot_store = snapshot_store
        self._pool_data_source = pool_data_source
        self._tracked_pools = list(dict.fromkeys(pools))
        self._initial_hours_back = initial_hours_back
        self._max_workers = max(1, max_workers)
        self._clock = clock
        self._rng = rng or random.Random()

    @property
    def tracked_pools(self) -> list[str]:
        return list(self._tracked_pools)

    def initialize_history(self) -> dict[str, int]:
        created: dict[str, int] = {}
        for pool_address in self._tracked_pools:
            if self._snapshot_store.latest(pool_address) is not None:
                logger.info("collection_orchestrator: history_exists pool=%s", pool_address)
                created[pool_address] = 0
                continue

            state = self._fetch_one(pool_address)
            if state is None:
                created[pool_address] = 0
                continue

            samples = synthesize_backfill(
                state,
                now=self._clock(),
                hours=self._initial_hours_back,
                rng=self._rng,
            )
            written = self._snapshot_store.upsert_batch(samples)
            created[pool_address] = written
            logger.info(
                "collection_orchestrator: backfill_created pool=%s hours=%s written=%s",
                pool_address,
                self._initial_hours_back,
                written,
            )
        return created

    def take_snapshot(self) -> CollectionResult:
        timestamp = self._clock()
        states = self._fetch_all(self._tracked_pools)

        candidates: list[PoolSnapshot] = []
        failed_pools: list[str] = []
        for pool_address in self._tracked_pools:
            state = states.get(pool_address)
            if state is None:
                failed_pools.append(pool_address)
                continue
            candidates.append(
                PoolSnapshot(
                    timestamp=timestamp,
                    pool_address=pool_address,
                    reserve_usd=state.reserve_usd,
                    volume_usd=state.volume_usd,
                    block_number=state.block_number,
                )
            )

        written = self._snapshot_store.upsert_batch(candidates) if candidates else 0
        logger.info(
            "collection_orchestrator: snapshot_cycle ts=%s attempted=%s written=%s failed=%s",
            timestamp.isoformat(),
            len(self._tracked_pools),
            written,
            len(failed_pools),
        )
        return CollectionResult(
            timestamp=timestamp,
            attempted=len(self._tracked_pools),
            written=written,
            failed_pools=failed_pools,
        )

    def cleanup(self, retention_days: int) -> int:
        deleted = self._snapshot_store.purge_older_than(retention_days)
        logger.info(
            "collection_orchestrator: cleanup retention_days=%s deleted=%s",
            retention_days,
            deleted,
        )
        return deleted

    def collection_status(self) -> CollectionStatus:
        latest_snapshots: dict[str, datetime | None] = {}
        for pool_address in self._tracked_pools:
            latest = self._snapshot_store.latest(pool_address)
            latest_snapshots[pool_address] = latest.timestamp if latest else None
        return CollectionStatus(
            tracked_pools=self.tracked_pools,
            latest_snapshots=latest_snapshots,
            stats=self._snapshot_store.stats(),
        )

    def _fetch_all(self, pool_addresses: list[str]) -> dict[str, PoolState]:
        if len(pool_addresses) == 1 or self._max_workers == 1:
            fetched = {pool: self._fetch_one(pool) for pool in pool_addresses}
        else:
            workers = min(self._max_workers, len(pool_addresses))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {pool: executor.submit(self._fetch_one, pool) for pool in pool_addresses}
                fetched = {pool: future.result() for pool, future in futures.items()}
        return {pool: state for pool, state in fetched.items() if state is not None}

    def _fetch_one(self, pool_address: str) -> PoolState | None:
        try:
            return self._pool_data_source.fetch_pool_state(pool_address)
        except UpstreamUnavailableError as exc:
            logger.warning(
                "collection_orchestrator: upstream_unavailable pool=%s error=%s",
                pool_address,
                exc,
            )
        except Exception as exc:
            logger.exception(
                "collection_orchestrator: upstream_failed pool=%s error=%s",
                pool_address,
                exc,
            )
        return None
