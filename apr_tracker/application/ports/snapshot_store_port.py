from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from apr_tracker.domain.entities.snapshot import PoolSnapshot, SnapshotStats


class SnapshotStorePort(Protocol):
    def upsert(self, snapshot: PoolSnapshot) -> PoolSnapshot:
        ...

    def upsert_batch(self, snapshots: Sequence[PoolSnapshot]) -> int:
        ...

    def query(
        self,
        pool_address: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[PoolSnapshot]:
        ...

    def latest(self, pool_address: str) -> PoolSnapshot | None:
        ...

    def window_slice(
        self,
        pool_address: str,
        *,
        end: datetime,
        window_hours: int,
    ) -> list[PoolSnapshot]:
        ...

    def purge_older_than(self, days: int) -> int:
        ...

    def stats(self) -> SnapshotStats:
        ...

    def ping(self) -> None:
        ...
