from __future__ import annotations

import math
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_seconds(value: datetime) -> int:
    return int(ensure_utc(value).timestamp())


def from_epoch_seconds(value: int) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def to_epoch_seconds_ceil(value: datetime) -> int:
    """Lower range bounds round up so a row before the bound is never admitted."""
    return math.ceil(ensure_utc(value).timestamp())
