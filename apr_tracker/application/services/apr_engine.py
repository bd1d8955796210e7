from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from apr_tracker.application.ports.snapshot_store_port import SnapshotStorePort
from apr_tracker.domain.entities.apr import AprPoint, WindowApr
from apr_tracker.domain.services.apr_calculation import FEE_RATE, compute_window_apr
from apr_tracker.shared.clock import utc_now


logger = logging.getLogger(__name__)


class AprEngine:
    def __init__(
        self,
        *,
        snapshot_store: SnapshotStorePort,
        fee_rate: Decimal = FEE_RATE,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._snapshot_store = snapshot_store
        self._fee_rate = fee_rate
        self._clock = clock

    def get_apr_time_series(
        self,
        pool_address: str,
        *,
        window_hours: int,
        start: datetime,
        end: datetime,
    ) -> list[AprPoint]:
        anchors = self._snapshot_store.query(pool_address, start=start, end=end)
        points: list[AprPoint] = []
        for anchor in anchors:
            window = self._snapshot_store.window_slice(
                pool_address,
                end=anchor.timestamp,
                window_hours=window_hours,
            )
            result = self._compute(pool_address, window, window_hours)
            if result is None:
                continue
            points.append(
                AprPoint(
                    timestamp=anchor.timestamp,
                    apr=result.apr,
                    window_hours=window_hours,
                    reserve_usd=anchor.reserve_usd,
                    volume_usd=anchor.volume_usd,
                    fees_usd=result.fees_usd,
                    fee_rate=self._fee_rate,
                    average_reserve_usd=result.average_reserve_usd,
                )
            )

        points.sort(key=lambda point: point.timestamp)
        logger.info(
            "apr_engine: time_series pool=%s window_hours=%s anchors=%s points=%s",
            pool_address,
            window_hours,
            len(anchors),
            len(points),
        )
        return points

    def get_current_apr(self, pool_address: str, *, window_hours: int) -> AprPoint | None:
        now = self._clock()
        window = self._snapshot_store.window_slice(pool_address, end=now, window_hours=window_hours)
        result = self._compute(pool_address, window, window_hours)
        if result is None:
            return None

        latest = max(window, key=lambda row: row.timestamp)
        return AprPoint(
            timestamp=now,
            apr=result.apr,
            window_hours=window_hours,
            reserve_usd=latest.reserve_usd,
            volume_usd=latest.volume_usd,
            fees_usd=result.fees_usd,
            fee_rate=self._fee_rate,
            average_reserve_usd=result.average_reserve_usd,
        )

    def _compute(self, pool_address: str, window, window_hours: int) -> WindowApr | None:
        result = compute_window_apr(window, window_hours, fee_rate=self._fee_rate)
        if result is not None and result.volume_reset_detected:
            logger.warning(
                "apr_engine: volume_counter_regression pool=%s window_hours=%s points=%s",
                pool_address,
                window_hours,
                len(window),
            )
        return result
