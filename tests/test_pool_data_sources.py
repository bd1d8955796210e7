from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from apr_tracker.domain.entities.pool_state import PoolState
from apr_tracker.domain.exceptions import UpstreamUnavailableError
from apr_tracker.infrastructure.clients.fixture_pool_data_source import (
    DEFAULT_FIXTURES,
    FixturePoolDataSource,
)
from apr_tracker.infrastructure.clients.pool_data_source_factory import build_pool_data_source
from apr_tracker.infrastructure.clients.uniswap_v2_subgraph_client import UniswapV2SubgraphClient
from apr_tracker.shared.config import DEFAULT_TRACKED_POOLS, get_settings


def test_fixture_source_covers_default_tracked_pools():
    source = FixturePoolDataSource()
    for pool in DEFAULT_TRACKED_POOLS:
        state = source.fetch_pool_state(pool.upper().replace("0X", "0x"))
        assert state == DEFAULT_FIXTURES[pool]


def test_fixture_source_unknown_pool_is_upstream_unavailable():
    with pytest.raises(UpstreamUnavailableError):
        FixturePoolDataSource().fetch_pool_state("0x" + "0" * 40)


def test_fixture_source_accepts_custom_fixtures():
    pool = "0x" + "a" * 40
    source = FixturePoolDataSource(
        {pool.upper().replace("0X", "0x"): PoolState(pool_address=pool, reserve_usd=Decimal("1"), volume_usd=Decimal("2"))}
    )
    assert source.fetch_pool_state(pool).volume_usd == Decimal("2")


def test_factory_uses_fixtures_without_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GRAPH_API_KEY", "")
    assert isinstance(build_pool_data_source(get_settings()), FixturePoolDataSource)


def test_factory_uses_subgraph_client_with_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GRAPH_API_KEY", "secret")
    settings = get_settings()
    source = build_pool_data_source(settings)

    assert isinstance(source, UniswapV2SubgraphClient)
    assert isinstance(build_pool_data_source(replace(settings, graph_api_key="  ")), FixturePoolDataSource)
