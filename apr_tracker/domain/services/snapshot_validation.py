from __future__ import annotations

import re
from dataclasses import replace
from decimal import Decimal, InvalidOperation

from apr_tracker.domain.entities.snapshot import PoolSnapshot
from apr_tracker.domain.exceptions import SnapshotValidationError
from apr_tracker.shared.clock import ensure_utc


POOL_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_pool_address(pool_address: str) -> str:
    return (pool_address or "").strip().lower()


def is_valid_pool_address(pool_address: str) -> bool:
    return bool(POOL_ADDRESS_PATTERN.match(normalize_pool_address(pool_address)))


def validate_snapshot(snapshot: PoolSnapshot) -> PoolSnapshot:
    """Return the canonical form of a candidate or raise SnapshotValidationError.

    Canonical form: lower-case pool address, UTC timestamp truncated to the
    second, Decimal amounts.
    """
    pool_address = normalize_pool_address(snapshot.pool_address)
    if not pool_address:
        raise SnapshotValidationError("pool_address is required.")

    reserve_usd = _to_decimal(snapshot.reserve_usd, "reserve_usd")
    volume_usd = _to_decimal(snapshot.volume_usd, "volume_usd")
    if reserve_usd < 0:
        raise SnapshotValidationError(
            f"reserve_usd must be non-negative (pool={pool_address} value={reserve_usd})."
        )
    if volume_usd < 0:
        raise SnapshotValidationError(
            f"volume_usd must be non-negative (pool={pool_address} value={volume_usd})."
        )
    if snapshot.block_number is not None and snapshot.block_number < 0:
        raise SnapshotValidationError(
            f"block_number must be non-negative when provided (pool={pool_address})."
        )

    return replace(
        snapshot,
        pool_address=pool_address,
        timestamp=ensure_utc(snapshot.timestamp).replace(microsecond=0),
        reserve_usd=reserve_usd,
        volume_usd=volume_usd,
    )


def _to_decimal(value, field: str) -> Decimal:
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise SnapshotValidationError(f"{field} must be numeric.") from exc
    if not result.is_finite():
        raise SnapshotValidationError(f"{field} must be finite.")
    return result
