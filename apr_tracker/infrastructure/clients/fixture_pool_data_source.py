from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from apr_tracker.application.ports.pool_data_source_port import PoolDataSourcePort
from apr_tracker.domain.entities.pool_state import PoolState
from apr_tracker.domain.exceptions import UpstreamUnavailableError


DEFAULT_FIXTURES: dict[str, PoolState] = {
    "0xbc9d21652cca70f54351e3fb982c6b5dbe992a22": PoolState(
        pool_address="0xbc9d21652cca70f54351e3fb982c6b5dbe992a22",
        reserve_usd=Decimal("0.000000008"),
        volume_usd=Decimal("176742"),
        token0_symbol="WETH",
        token1_symbol="RKFL",
    ),
    "0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc": PoolState(
        pool_address="0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc",
        reserve_usd=Decimal("64000000"),
        volume_usd=Decimal("50000000000"),
        token0_symbol="USDC",
        token1_symbol="WETH",
    ),
}


class FixturePoolDataSource(PoolDataSourcePort):
    """Static pool states for running without subgraph credentials."""

    def __init__(self, fixtures: Mapping[str, PoolState] | None = None):
        source = DEFAULT_FIXTURES if fixtures is None else fixtures
        self._fixtures = {address.lower(): state for address, state in source.items()}

    def fetch_pool_state(self, pool_address: str) -> PoolState:
        state = self._fixtures.get(pool_address.strip().lower())
        if state is None:
            raise UpstreamUnavailableError(f"No fixture for pool {pool_address}.")
        return state
