from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from apr_tracker.domain.entities.apr import WindowApr
from apr_tracker.domain.entities.snapshot import PoolSnapshot


FEE_RATE = Decimal("0.003")
HOURS_PER_YEAR = Decimal("8760")
SUPPORTED_APR_WINDOWS = (1, 12, 24)


def compute_window_apr(
    snapshots: Sequence[PoolSnapshot],
    window_hours: int,
    *,
    fee_rate: Decimal = FEE_RATE,
) -> WindowApr | None:
    """Annualized fee APR implied by the volume growth inside one window.

    Returns None when fewer than two snapshots are available; that is "no data
    point" for the window, not an error. The volume delta between the first and
    last snapshot is clamped at zero so a counter reset or out-of-order data
    never yields negative fees; such cases are flagged with
    ``volume_reset_detected``. The average reserve is a plain mean over the
    snapshots present, not time weighted.
    """
    if len(snapshots) < 2:
        return None
    if window_hours <= 0:
        raise ValueError("window_hours must be positive.")

    ordered = sorted(snapshots, key=lambda row: row.timestamp)
    earliest = ordered[0]
    latest = ordered[-1]

    raw_delta = Decimal(latest.volume_usd) - Decimal(earliest.volume_usd)
    volume_delta = max(Decimal("0"), raw_delta)
    fees_usd = volume_delta * fee_rate

    total_reserve = sum((Decimal(row.reserve_usd) for row in ordered), Decimal("0"))
    average_reserve = total_reserve / Decimal(len(ordered))

    apr = Decimal("0")
    if average_reserve > 0:
        apr = (fees_usd / average_reserve) * (HOURS_PER_YEAR / Decimal(window_hours)) * Decimal("100")

    return WindowApr(
        apr=max(Decimal("0"), apr),
        fees_usd=fees_usd,
        average_reserve_usd=average_reserve,
        volume_delta_usd=volume_delta,
        volume_reset_detected=raw_delta < 0,
    )


def is_supported_window(window_hours: int) -> bool:
    return window_hours in SUPPORTED_APR_WINDOWS
