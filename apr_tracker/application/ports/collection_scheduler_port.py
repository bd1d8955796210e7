from __future__ import annotations

from typing import Protocol

from apr_tracker.application.dto.collection import CollectionResult, SchedulerStatus


class CollectionSchedulerPort(Protocol):
    def trigger_now(self) -> CollectionResult:
        ...

    def status(self) -> SchedulerStatus:
        ...
