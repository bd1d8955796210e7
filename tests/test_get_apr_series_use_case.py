from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
import unittest

from apr_tracker.application.dto.apr import GetAprSeriesInput
from apr_tracker.application.use_cases.get_apr_series import GetAprSeriesUseCase
from apr_tracker.domain.entities.apr import AprPoint
from apr_tracker.domain.exceptions import InvalidParameterError


POOL = "0xb4e16d0168e52d35cacd2c6185b44281ec28c9dc"
NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def _point(ts: datetime) -> AprPoint:
    return AprPoint(
        timestamp=ts,
        apr=Decimal("12.5"),
        window_hours=24,
        reserve_usd=Decimal("1000"),
        volume_usd=Decimal("2000"),
        fees_usd=Decimal("1"),
        fee_rate=Decimal("0.003"),
        average_reserve_usd=Decimal("1000"),
    )


class FakeAprEngine:
    def __init__(self, *, series: list[AprPoint] | None = None, current: AprPoint | None = None):
        self.series = series or []
        self.current = current
        self.series_calls: list[dict] = []
        self.current_calls: list[dict] = []

    def get_apr_time_series(self, pool_address, *, window_hours, start, end):
        self.series_calls.append(
            {"pool_address": pool_address, "window_hours": window_hours, "start": start, "end": end}
        )
        return list(self.series)

    def get_current_apr(self, pool_address, *, window_hours):
        self.current_calls.append({"pool_address": pool_address, "window_hours": window_hours})
        return self.current


class GetAprSeriesUseCaseTests(unittest.TestCase):
    def test_unsupported_window_is_rejected_before_engine_call(self):
        engine = FakeAprEngine()
        use_case = GetAprSeriesUseCase(apr_engine=engine, clock=lambda: NOW)

        with self.assertRaises(InvalidParameterError):
            use_case.execute(GetAprSeriesInput(pool_address=POOL, window_hours=6))

        self.assertEqual(engine.series_calls, [])
        self.assertEqual(engine.current_calls, [])

    def test_invalid_pool_address_is_rejected(self):
        use_case = GetAprSeriesUseCase(apr_engine=FakeAprEngine(), clock=lambda: NOW)
        with self.assertRaises(InvalidParameterError):
            use_case.execute(GetAprSeriesInput(pool_address="0xnothex"))

    def test_default_range_is_last_seven_days(self):
        engine = FakeAprEngine(series=[_point(NOW)])
        use_case = GetAprSeriesUseCase(apr_engine=engine, clock=lambda: NOW)

        output = use_case.execute(GetAprSeriesInput(pool_address=POOL.upper().replace("0X", "0x")))

        self.assertEqual(output.pool_address, POOL)
        self.assertEqual(output.start, NOW - timedelta(days=7))
        self.assertEqual(output.end, NOW)
        self.assertFalse(output.fallback)
        self.assertEqual(engine.series_calls[0]["window_hours"], 24)
        self.assertEqual(engine.current_calls, [])

    def test_start_after_end_is_rejected(self):
        use_case = GetAprSeriesUseCase(apr_engine=FakeAprEngine(), clock=lambda: NOW)
        with self.assertRaises(InvalidParameterError):
            use_case.execute(
                GetAprSeriesInput(pool_address=POOL, window_hours=1, start=NOW, end=NOW - timedelta(hours=1))
            )

    def test_empty_series_falls_back_to_current_apr(self):
        engine = FakeAprEngine(current=_point(NOW))
        use_case = GetAprSeriesUseCase(apr_engine=engine, clock=lambda: NOW)

        output = use_case.execute(GetAprSeriesInput(pool_address=POOL, window_hours=12))

        self.assertTrue(output.fallback)
        self.assertEqual(len(output.points), 1)
        self.assertEqual(engine.current_calls, [{"pool_address": POOL, "window_hours": 12}])

    def test_empty_series_without_current_apr_returns_no_points(self):
        use_case = GetAprSeriesUseCase(apr_engine=FakeAprEngine(), clock=lambda: NOW)

        output = use_case.execute(GetAprSeriesInput(pool_address=POOL, window_hours=1))

        self.assertEqual(output.points, [])
        self.assertFalse(output.fallback)
