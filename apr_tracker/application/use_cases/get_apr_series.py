from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from apr_tracker.application.dto.apr import GetAprSeriesInput, GetAprSeriesOutput
from apr_tracker.application.services.apr_engine import AprEngine
from apr_tracker.application.use_cases.get_pool_snapshots import validate_pool_address
from apr_tracker.domain.exceptions import InvalidParameterError
from apr_tracker.domain.services.apr_calculation import SUPPORTED_APR_WINDOWS, is_supported_window
from apr_tracker.shared.clock import ensure_utc, utc_now


DEFAULT_RANGE = timedelta(days=7)


class GetAprSeriesUseCase:
    def __init__(self, *, apr_engine: AprEngine, clock: Callable[[], datetime] = utc_now):
        self._apr_engine = apr_engine
        self._clock = clock

    def execute(self, command: GetAprSeriesInput) -> GetAprSeriesOutput:
        if not is_supported_window(command.window_hours):
            allowed = ", ".join(str(value) for value in SUPPORTED_APR_WINDOWS)
            raise InvalidParameterError(f"window must be one of {allowed} hours.")
        pool_address = validate_pool_address(command.pool_address)

        end = ensure_utc(command.end) if command.end is not None else self._clock()
        start = ensure_utc(command.start) if command.start is not None else end - DEFAULT_RANGE
        if start > end:
            raise InvalidParameterError("start must not be later than end.")

        points = self._apr_engine.get_apr_time_series(
            pool_address,
            window_hours=command.window_hours,
            start=start,
            end=end,
        )
        fallback = False
        if not points:
            current = self._apr_engine.get_current_apr(pool_address, window_hours=command.window_hours)
            if current is not None:
                points = [current]
                fallback = True

        return GetAprSeriesOutput(
            pool_address=pool_address,
            window_hours=command.window_hours,
            start=start,
            end=end,
            points=points,
            fallback=fallback,
        )
