from __future__ import annotations

import random
from datetime import datetime, timedelta
from decimal import Decimal

from apr_tracker.domain.entities.pool_state import PoolState
from apr_tracker.domain.entities.snapshot import PoolSnapshot
from apr_tracker.shared.clock import ensure_utc


DEFAULT_HOURLY_VOLUME_DECREMENT = Decimal("50000")
DEFAULT_RESERVE_JITTER = Decimal("0.05")


def synthesize_backfill(
    state: PoolState,
    *,
    now: datetime,
    hours: int,
    rng: random.Random | None = None,
    hourly_volume_decrement: Decimal = DEFAULT_HOURLY_VOLUME_DECREMENT,
    reserve_jitter: Decimal = DEFAULT_RESERVE_JITTER,
) -> list[PoolSnapshot]:
    """Approximate hourly history from a single live reading.

    This is not a reconstruction of real history. It only seeds enough points
    for the window APR to be computable right after the first deployment:
    sample ``i`` sits ``i`` hours before ``now``, its reserve is the live
    reserve scaled by a uniform factor in ``[1 - jitter, 1 + jitter)`` and its
    cumulative volume is the live volume minus ``i`` hourly decrements. The
    decrement shrinks for pools whose live volume is too small to absorb it, so
    volume stays non-negative and strictly decreases going back in time
    whenever the live volume is positive.

    Samples are returned oldest first.
    """
    if hours <= 0:
        return []

    source = rng or random.Random()
    anchor = ensure_utc(now).replace(microsecond=0)
    reserve = Decimal(state.reserve_usd)
    volume = Decimal(state.volume_usd)
    decrement = min(Decimal(hourly_volume_decrement), volume / Decimal(hours))
    decrement = max(Decimal("0"), decrement)

    samples: list[PoolSnapshot] = []
    for hours_back in range(hours):
        factor = Decimal("1") - reserve_jitter + Decimal(str(source.random())) * (reserve_jitter * 2)
        samples.append(
            PoolSnapshot(
                timestamp=anchor - timedelta(hours=hours_back),
                pool_address=state.pool_address,
                reserve_usd=reserve * factor,
                volume_usd=max(Decimal("0"), volume - decrement * hours_back),
            )
        )

    samples.sort(key=lambda row: row.timestamp)
    return samples
