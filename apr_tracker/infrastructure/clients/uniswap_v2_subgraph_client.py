from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
import logging
from threading import Lock
import time

import httpx

from apr_tracker.application.ports.pool_data_source_port import PoolDataSourcePort
from apr_tracker.domain.entities.pool_state import PoolState
from apr_tracker.domain.exceptions import UpstreamUnavailableError


logger = logging.getLogger(__name__)

_RETRY_BASE_DELAY_SECONDS = 0.25


PAIR_QUERY = """
query PairState($pairId: ID!) {
  pair(id: $pairId) {
    id
    reserveUSD
    volumeUSD
    token0 { symbol }
    token1 { symbol }
  }
  _meta { block { number } }
}
"""


class SubgraphRequestError(RuntimeError):
    def __init__(self, message: str, *, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


@dataclass(frozen=True)
class UniswapV2SubgraphClientSettings:
    graph_gateway_base: str
    graph_api_key: str
    graph_subgraph_id: str
    timeout_seconds: float
    max_retries: int
    min_interval_ms: int


class UniswapV2SubgraphClient(PoolDataSourcePort):
    def __init__(self, settings: UniswapV2SubgraphClientSettings):
        self._settings = settings
        self._lock = Lock()
        self._next_slot_at = 0.0

    def fetch_pool_state(self, pool_address: str) -> PoolState:
        pair_id = pool_address.strip().lower()
        try:
            payload = self._post_graphql(
                url=self._build_gateway_url(self._settings.graph_subgraph_id),
                query=PAIR_QUERY,
                variables={"pairId": pair_id},
            )
        except SubgraphRequestError as exc:
            raise UpstreamUnavailableError(f"Subgraph request failed for {pair_id}: {exc}") from exc

        data = payload.get("data") or {}
        pair = data.get("pair")
        if not pair:
            raise UpstreamUnavailableError(f"Pair {pair_id} not found in subgraph.")

        try:
            reserve_usd = Decimal(str(pair["reserveUSD"]))
            volume_usd = Decimal(str(pair["volumeUSD"]))
        except (KeyError, InvalidOperation, ValueError) as exc:
            raise UpstreamUnavailableError(f"Pair {pair_id} returned malformed amounts.") from exc

        meta_block = ((data.get("_meta") or {}).get("block") or {}).get("number")
        state = PoolState(
            pool_address=pair_id,
            reserve_usd=reserve_usd,
            volume_usd=volume_usd,
            token0_symbol=(pair.get("token0") or {}).get("symbol"),
            token1_symbol=(pair.get("token1") or {}).get("symbol"),
            block_number=int(meta_block) if meta_block is not None else None,
        )
        logger.info(
            "uniswap_v2_subgraph_client: fetched_pair pair=%s symbols=%s/%s reserve_usd=%s volume_usd=%s block=%s",
            pair_id,
            state.token0_symbol,
            state.token1_symbol,
            state.reserve_usd,
            state.volume_usd,
            state.block_number,
        )
        return state

    def _post_graphql(self, *, url: str, query: str, variables: dict) -> dict:
        attempts = max(1, self._settings.max_retries)
        for attempt in range(1, attempts):
            try:
                return self._send(url=url, query=query, variables=variables)
            except SubgraphRequestError as exc:
                if not exc.retryable:
                    raise
                backoff = _RETRY_BASE_DELAY_SECONDS * (2 ** (attempt - 1))
                logger.warning(
                    "uniswap_v2_subgraph_client: graphql_retry attempt=%s/%s backoff=%s error=%s",
                    attempt,
                    attempts,
                    backoff,
                    exc,
                )
                time.sleep(backoff)
        return self._send(url=url, query=query, variables=variables)

    def _send(self, *, url: str, query: str, variables: dict) -> dict:
        self._wait_for_slot()
        try:
            with httpx.Client(timeout=self._settings.timeout_seconds) as client:
                response = client.post(url, json={"query": query, "variables": variables})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise SubgraphRequestError(
                f"gateway returned HTTP {status}",
                retryable=status == 429 or status >= 500,
            ) from exc
        except httpx.HTTPError as exc:
            raise SubgraphRequestError(f"transport error: {exc}") from exc
        except ValueError as exc:
            raise SubgraphRequestError("gateway returned invalid JSON") from exc

        errors = payload.get("errors") or []
        if errors:
            raise SubgraphRequestError(" | ".join(str(err.get("message", err)) for err in errors))
        return payload

    def _wait_for_slot(self) -> None:
        interval = max(0, self._settings.min_interval_ms) / 1000.0
        if interval <= 0:
            return
        with self._lock:
            now = time.monotonic()
            slot = max(now, self._next_slot_at)
            self._next_slot_at = slot + interval
        if slot > now:
            time.sleep(slot - now)

    def _build_gateway_url(self, subgraph_id: str) -> str:
        if subgraph_id.startswith("http://") or subgraph_id.startswith("https://"):
            return subgraph_id.rstrip("/")
        base = self._settings.graph_gateway_base.rstrip("/")
        api_key = self._settings.graph_api_key.strip()
        if api_key:
            return f"{base}/{api_key}/subgraphs/id/{subgraph_id}"
        return f"{base}/subgraphs/id/{subgraph_id}"
