from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from apr_tracker.domain.entities.apr import AprPoint


@dataclass(frozen=True)
class GetAprSeriesInput:
    pool_address: str
    window_hours: int = 24
    start: datetime | None = None
    end: datetime | None = None


@dataclass(frozen=True)
class GetAprSeriesOutput:
    pool_address: str
    window_hours: int
    start: datetime
    end: datetime
    points: list[AprPoint]
    fallback: bool
