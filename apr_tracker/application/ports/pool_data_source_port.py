from __future__ import annotations

from typing import Protocol

from apr_tracker.domain.entities.pool_state import PoolState


class PoolDataSourcePort(Protocol):
    def fetch_pool_state(self, pool_address: str) -> PoolState:
        """Current reserve and cumulative volume, or UpstreamUnavailableError."""
        ...
