from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from biofarm_notify.api.deps import get_notification_service, get_trigger_registry
from biofarm_notify.config import get_settings
from biofarm_notify.models.db import get_db_session
from biofarm_notify.models.schemas import (
    AlertCreate,
    AlertResponse,
    DocumentEventRequest,
    DocumentEventResponse,
    UserProfileRequest,
    UserProfileResponse,
    VetReportCreate,
    VetReportResponse,
    VetRequestCreate,
    VetRequestResponse,
    VetRequestStatusUpdate,
)
from biofarm_notify.notifications.service import COMPLETED, NotificationService
from biofarm_notify.storage.repository import AlertRepository, UserRepository, VetReportRepository, VetRequestRepository
from biofarm_notify.triggers import ALERTS, CREATED, UPDATED, VET_REPORTS, VET_REQUESTS, DocumentEvent, TriggerRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["smartbiofarm"])


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.post("/users", response_model=UserProfileResponse)
def upsert_user(payload: UserProfileRequest, db: Session = Depends(get_db_session)):
    row, created = UserRepository(db).upsert_profile(
        payload.id,
        role=payload.role,
        full_name=payload.full_name,
        email=payload.email,
    )
    db.commit()
    db.refresh(row)
    logger.info("User profile saved", extra={"user_id": row.id, "was_created": created})
    return UserProfileResponse(has_token=bool(row.fcm_token), **row.to_document())


@router.post("/vet-requests", response_model=VetRequestResponse)
def create_vet_request(
    payload: VetRequestCreate,
    db: Session = Depends(get_db_session),
    service: NotificationService = Depends(get_notification_service),
    triggers: TriggerRegistry = Depends(get_trigger_registry),
):
    row = VetRequestRepository(db).add(**payload.model_dump(), status="pending")
    db.commit()
    db.refresh(row)
    document = row.to_document()
    triggers.fire(DocumentEvent(VET_REQUESTS, CREATED, row.id, after=document), service)
    return VetRequestResponse(**document)


@router.patch("/vet-requests/{request_id}", response_model=VetRequestResponse)
def update_vet_request_status(
    request_id: str,
    payload: VetRequestStatusUpdate,
    db: Session = Depends(get_db_session),
    service: NotificationService = Depends(get_notification_service),
    triggers: TriggerRegistry = Depends(get_trigger_registry),
):
    row = VetRequestRepository(db).get(request_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Vet request not found")
    if row.status == COMPLETED and payload.status != COMPLETED:
        raise HTTPException(status_code=409, detail="Completed requests cannot change status")

    before = row.to_document()
    row.status = payload.status
    db.commit()
    db.refresh(row)
    after = row.to_document()
    triggers.fire(DocumentEvent(VET_REQUESTS, UPDATED, row.id, before=before, after=after), service)
    return VetRequestResponse(**after)


@router.post("/vet-reports", response_model=VetReportResponse)
def create_vet_report(
    payload: VetReportCreate,
    db: Session = Depends(get_db_session),
    service: NotificationService = Depends(get_notification_service),
    triggers: TriggerRegistry = Depends(get_trigger_registry),
):
    if UserRepository(db).get(payload.farmer_id) is None:
        raise HTTPException(status_code=404, detail="Farmer not found")

    row = VetReportRepository(db).add(**payload.model_dump())
    db.commit()
    db.refresh(row)
    document = row.to_document()
    triggers.fire(DocumentEvent(VET_REPORTS, CREATED, row.id, after=document), service)
    return VetReportResponse(**document)


@router.post("/alerts", response_model=AlertResponse)
def create_alert(
    payload: AlertCreate,
    db: Session = Depends(get_db_session),
    service: NotificationService = Depends(get_notification_service),
    triggers: TriggerRegistry = Depends(get_trigger_registry),
):
    row = AlertRepository(db).add(**payload.model_dump())
    db.commit()
    db.refresh(row)
    document = row.to_document()
    triggers.fire(DocumentEvent(ALERTS, CREATED, row.id, after=document), service)
    return AlertResponse(**document)


@router.post("/events", response_model=DocumentEventResponse)
def receive_document_event(
    payload: DocumentEventRequest,
    x_trigger_secret: str = Header(default=""),
    service: NotificationService = Depends(get_notification_service),
    triggers: TriggerRegistry = Depends(get_trigger_registry),
):
    expected = get_settings().trigger_shared_secret
    if expected and not hmac.compare_digest(x_trigger_secret.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid trigger secret")

    if not triggers.bindings_for(payload.collection, payload.event_kind):
        logger.info(
            "No trigger bound for document event",
            extra={"collection": payload.collection, "event_kind": payload.event_kind},
        )
        return DocumentEventResponse(handled=False)

    event = DocumentEvent(
        collection=payload.collection,
        kind=payload.event_kind,
        document_id=payload.document_id,
        before=payload.before,
        after=payload.after,
    )
    return DocumentEventResponse(handled=True, results=triggers.fire(event, service))
