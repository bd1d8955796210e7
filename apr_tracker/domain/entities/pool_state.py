from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PoolState:
    pool_address: str
    reserve_usd: Decimal
    volume_usd: Decimal
    token0_symbol: str | None = None
    token1_symbol: str | None = None
    block_number: int | None = None
