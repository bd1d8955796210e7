from __future__ import annotations

from apr_tracker.application.dto.snapshots import GetPoolSnapshotsInput, GetPoolSnapshotsOutput
from apr_tracker.application.ports.snapshot_store_port import SnapshotStorePort
from apr_tracker.domain.entities.snapshot import PoolSnapshot
from apr_tracker.domain.exceptions import InvalidParameterError
from apr_tracker.domain.services.snapshot_validation import (
    is_valid_pool_address,
    normalize_pool_address,
)
from apr_tracker.shared.clock import ensure_utc


DEFAULT_LIMIT = 100
MAX_LIMIT = 1000


def validate_pool_address(pool_address: str) -> str:
    if not is_valid_pool_address(pool_address):
        raise InvalidParameterError("pool_address must be 0x followed by 40 hex characters.")
    return normalize_pool_address(pool_address)


class GetPoolSnapshotsUseCase:
    def __init__(self, *, snapshot_store: SnapshotStorePort):
        self._snapshot_store = snapshot_store

    def execute(self, command: GetPoolSnapshotsInput) -> GetPoolSnapshotsOutput:
        pool_address = validate_pool_address(command.pool_address)
        limit = DEFAULT_LIMIT if command.limit is None else command.limit
        if limit < 1 or limit > MAX_LIMIT:
            raise InvalidParameterError(f"limit must be between 1 and {MAX_LIMIT}.")
        if command.offset < 0:
            raise InvalidParameterError("offset must be zero or positive.")
        start = ensure_utc(command.start) if command.start is not None else None
        end = ensure_utc(command.end) if command.end is not None else None
        if start is not None and end is not None and start > end:
            raise InvalidParameterError("start must not be later than end.")

        snapshots = self._snapshot_store.query(
            pool_address,
            start=start,
            end=end,
            limit=limit,
            offset=command.offset,
        )
        return GetPoolSnapshotsOutput(
            pool_address=pool_address,
            snapshots=snapshots,
            limit=limit,
            offset=command.offset,
            start=start,
            end=end,
        )


class GetLatestSnapshotUseCase:
    def __init__(self, *, snapshot_store: SnapshotStorePort):
        self._snapshot_store = snapshot_store

    def execute(self, *, pool_address: str) -> PoolSnapshot | None:
        return self._snapshot_store.latest(validate_pool_address(pool_address))
