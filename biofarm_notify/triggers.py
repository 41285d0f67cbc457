from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from biofarm_notify.notifications.service import NotificationService

logger = logging.getLogger(__name__)

VET_REQUESTS = "vetRequests"
VET_REPORTS = "vetReports"
ALERTS = "alerts"

CREATED = "created"
UPDATED = "updated"


@dataclass(frozen=True)
class DocumentEvent:
    collection: str
    kind: str
    document_id: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None


TriggerHandler = Callable[[NotificationService, DocumentEvent], Any]


@dataclass(frozen=True)
class TriggerBinding:
    collection: str
    kind: str
    name: str
    handler: TriggerHandler


class TriggerRegistry:
    def __init__(self) -> None:
        self._bindings: list[TriggerBinding] = []

    def register(self, collection: str, kind: str, handler: TriggerHandler, name: str | None = None) -> None:
        self._bindings.append(
            TriggerBinding(collection=collection, kind=kind, name=name or handler.__name__, handler=handler)
        )

    def bindings_for(self, collection: str, kind: str) -> list[TriggerBinding]:
        return [b for b in self._bindings if b.collection == collection and b.kind == kind]

    def fire(self, event: DocumentEvent, service: NotificationService) -> list[dict[str, Any] | None]:
        results: list[dict[str, Any] | None] = []
        for binding in self.bindings_for(event.collection, event.kind):
            try:
                result = binding.handler(service, event)
            except Exception:
                # Triggers always complete from the host's point of view.
                logger.exception(
                    "Trigger handler failed",
                    extra={"trigger": binding.name, "collection": event.collection, "document_id": event.document_id},
                )
                results.append(None)
                continue
            results.append(result.model_dump(mode="json", by_alias=True) if isinstance(result, BaseModel) else result)
        return results


def _on_request_created(service: NotificationService, event: DocumentEvent):
    return service.notify_vets_on_request(event.document_id, event.after)


def _on_report_created(service: NotificationService, event: DocumentEvent):
    return service.notify_farmer_on_report(event.document_id, event.after)


def _on_request_updated(service: NotificationService, event: DocumentEvent):
    return service.notify_farmer_on_treatment_complete(event.document_id, event.before, event.after)


def _on_alert_created(service: NotificationService, event: DocumentEvent):
    return service.notify_user_on_alert(event.document_id, event.after)


def default_registry() -> TriggerRegistry:
    registry = TriggerRegistry()
    registry.register(VET_REQUESTS, CREATED, _on_request_created, name="notifyVetsOnRequest")
    registry.register(VET_REPORTS, CREATED, _on_report_created, name="notifyFarmerOnTreatment")
    registry.register(VET_REQUESTS, UPDATED, _on_request_updated, name="notifyFarmerOnTreatmentComplete")
    registry.register(ALERTS, CREATED, _on_alert_created, name="notifyUserOnAlert")
    return registry
