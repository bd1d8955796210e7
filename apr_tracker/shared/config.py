from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


DEFAULT_TRACKED_POOLS = (
    "0xbc9d21652cca70f54351e3fb982c6b5dbe992a22",  # WETH/RKFL
    "0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc",  # USDC/WETH
)
DEFAULT_UNISWAP_V2_SUBGRAPH_ID = "A3Np3RQbaBA6oKJgiwDJeo5T3zrYfGHPWFYayMwtNDum"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = _env(name)
    if not value:
        return default
    return tuple(item.strip().lower() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    tracked_pools: tuple[str, ...]
    snapshot_interval_minutes: int
    initial_hours_back: int
    retention_days: int
    cleanup_hour_utc: int
    scheduler_enabled: bool
    graph_api_key: str
    graph_gateway_base: str
    graph_subgraph_id: str
    graph_request_timeout_seconds: float
    graph_max_retries: int
    graph_min_interval_ms: int
    collection_max_workers: int
    log_level: str


def get_settings() -> Settings:
    tracked_pools = _csv("TRACKED_POOLS", DEFAULT_TRACKED_POOLS)
    if not tracked_pools:
        raise ValueError("TRACKED_POOLS must list at least one pool address.")

    snapshot_interval_minutes = int(_env("SNAPSHOT_INTERVAL_MINUTES", "60"))
    if snapshot_interval_minutes <= 0:
        raise ValueError("SNAPSHOT_INTERVAL_MINUTES must be a positive integer.")

    cleanup_hour_utc = int(_env("CLEANUP_HOUR_UTC", "2"))
    if cleanup_hour_utc < 0 or cleanup_hour_utc > 23:
        raise ValueError("CLEANUP_HOUR_UTC must be between 0 and 23.")

    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        tracked_pools=tracked_pools,
        snapshot_interval_minutes=snapshot_interval_minutes,
        initial_hours_back=int(_env("INITIAL_HOURS_BACK", "48")),
        retention_days=int(_env("RETENTION_DAYS", "90")),
        cleanup_hour_utc=cleanup_hour_utc,
        scheduler_enabled=_bool("SCHEDULER_ENABLED", True),
        graph_api_key=_env("GRAPH_API_KEY", ""),
        graph_gateway_base=_env("GRAPH_GATEWAY_BASE", "https://gateway.thegraph.com/api"),
        graph_subgraph_id=_env("GRAPH_SUBGRAPH_ID", DEFAULT_UNISWAP_V2_SUBGRAPH_ID),
        graph_request_timeout_seconds=float(_env("GRAPH_REQUEST_TIMEOUT_SECONDS", "10")),
        graph_max_retries=int(_env("GRAPH_MAX_RETRIES", "3")),
        graph_min_interval_ms=int(_env("GRAPH_MIN_INTERVAL_MS", "120")),
        collection_max_workers=int(_env("COLLECTION_MAX_WORKERS", "4")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
