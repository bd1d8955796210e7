from __future__ import annotations

from apr_tracker.application.dto.collection import CollectionResult, CollectionStatusOutput
from apr_tracker.application.ports.collection_scheduler_port import CollectionSchedulerPort
from apr_tracker.application.services.collection_orchestrator import CollectionOrchestrator


class TriggerCollectionUseCase:
    def __init__(self, *, scheduler: CollectionSchedulerPort):
        self._scheduler = scheduler

    def execute(self) -> CollectionResult:
        return self._scheduler.trigger_now()


class GetCollectionStatusUseCase:
    def __init__(
        self,
        *,
        orchestrator: CollectionOrchestrator,
        scheduler: CollectionSchedulerPort | None = None,
    ):
        self._orchestrator = orchestrator
        self._scheduler = scheduler

    def execute(self) -> CollectionStatusOutput:
        collection = self._orchestrator.collection_status()
        scheduler_status = self._scheduler.status() if self._scheduler is not None else None
        return CollectionStatusOutput(collection=collection, scheduler=scheduler_status)
