from __future__ import annotations

import logging

from apr_tracker.application.ports.pool_data_source_port import PoolDataSourcePort
from apr_tracker.infrastructure.clients.fixture_pool_data_source import FixturePoolDataSource
from apr_tracker.infrastructure.clients.uniswap_v2_subgraph_client import (
    UniswapV2SubgraphClient,
    UniswapV2SubgraphClientSettings,
)
from apr_tracker.shared.config import Settings


logger = logging.getLogger(__name__)


def build_pool_data_source(settings: Settings) -> PoolDataSourcePort:
    """Pick the live subgraph client when an API key is configured, fixtures otherwise."""
    if not settings.graph_api_key.strip():
        logger.warning("pool_data_source_factory: graph_api_key_missing using=fixtures")
        return FixturePoolDataSource()

    logger.info(
        "pool_data_source_factory: using=subgraph subgraph_id=%s timeout_seconds=%s",
        settings.graph_subgraph_id,
        settings.graph_request_timeout_seconds,
    )
    return UniswapV2SubgraphClient(
        UniswapV2SubgraphClientSettings(
            graph_gateway_base=settings.graph_gateway_base,
            graph_api_key=settings.graph_api_key,
            graph_subgraph_id=settings.graph_subgraph_id,
            timeout_seconds=settings.graph_request_timeout_seconds,
            max_retries=settings.graph_max_retries,
            min_interval_ms=settings.graph_min_interval_ms,
        )
    )
