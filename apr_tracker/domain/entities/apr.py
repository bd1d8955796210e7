from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class WindowApr:
    apr: Decimal
    fees_usd: Decimal
    average_reserve_usd: Decimal
    volume_delta_usd: Decimal
    volume_reset_detected: bool = False


@dataclass(frozen=True)
class AprPoint:
    timestamp: datetime
    apr: Decimal
    window_hours: int
    reserve_usd: Decimal
    volume_usd: Decimal
    fees_usd: Decimal
    fee_rate: Decimal
    average_reserve_usd: Decimal
