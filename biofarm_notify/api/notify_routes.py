from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from biofarm_notify.api.deps import get_notification_service
from biofarm_notify.config import get_settings
from biofarm_notify.models.notification import DeliveryReport, MessageEnvelope
from biofarm_notify.models.schemas import (
    AdminCodeRequest,
    AdminCodeResponse,
    DeliveryOutcomeItem,
    FarmersAlertRequest,
    FarmerTreatmentRequest,
    NotifyResponse,
    SendToUserRequest,
    SendToVetsRequest,
    VetsNewRequestRequest,
)
from biofarm_notify.notifications.errors import UserNotFound
from biofarm_notify.notifications.service import NotificationService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["notifications"])


def _notify_response(report: DeliveryReport, empty_message: str, with_outcomes: bool = False) -> NotifyResponse:
    return NotifyResponse(
        success=True,
        success_count=report.success_count,
        failure_count=report.failure_count,
        message=empty_message if report.no_recipients else None,
        outcomes=[DeliveryOutcomeItem(**o.model_dump()) for o in report.outcomes] if with_outcomes else None,
    )


@router.post("/notify-farmers-new-alert", response_model=NotifyResponse, response_model_exclude_none=True)
def notify_farmers_new_alert(
    payload: FarmersAlertRequest,
    service: NotificationService = Depends(get_notification_service),
):
    try:
        report = service.notify_farmers_new_alert(
            alert_type=payload.alert_type,
            alert_message=payload.alert_message,
            created_by_name=payload.created_by_name,
        )
    except Exception as exc:
        logger.exception("Error notifying farmers", extra={"alert_type": payload.alert_type})
        raise HTTPException(status_code=500, detail="Failed to notify farmers") from exc
    logger.info(
        "Notified farmers about new alert",
        extra={"success_count": report.success_count, "failure_count": report.failure_count},
    )
    return _notify_response(report, "No farmer tokens found")


@router.post("/notify-vets-new-request", response_model=NotifyResponse, response_model_exclude_none=True)
def notify_vets_new_request(
    payload: VetsNewRequestRequest,
    service: NotificationService = Depends(get_notification_service),
):
    try:
        report = service.notify_vets_new_request(
            animal_type=payload.animal_type,
            category=payload.category,
            farmer_name=payload.farmer_name,
            request_id=payload.request_id,
            symptoms=payload.symptoms,
            urgency=payload.urgency,
        )
    except Exception as exc:
        logger.exception("Error notifying vets", extra={"request_id": payload.request_id})
        raise HTTPException(status_code=500, detail="Failed to notify veterinarians") from exc
    return _notify_response(report, "No veterinarian tokens found")


@router.post("/notify-farmer-treatment", response_model=NotifyResponse, response_model_exclude_none=True)
def notify_farmer_treatment(
    payload: FarmerTreatmentRequest,
    service: NotificationService = Depends(get_notification_service),
):
    try:
        report = service.notify_farmer_treatment(
            animal_type=payload.animal_type,
            farmer_id=payload.farmer_id,
            farmer_name=payload.farmer_name,
            vet_name=payload.vet_name,
            diagnosis=payload.diagnosis,
            treatment=payload.treatment,
            request_id=payload.request_id,
        )
    except UserNotFound as exc:
        raise HTTPException(status_code=404, detail="Farmer not found") from exc
    except Exception as exc:
        logger.exception("Error notifying farmer", extra={"farmer_id": payload.farmer_id})
        raise HTTPException(status_code=500, detail="Failed to notify farmer") from exc
    return _notify_response(report, "Farmer has no FCM token")


@router.post("/send-to-user", response_model=NotifyResponse, response_model_exclude_none=True)
def send_to_user(
    payload: SendToUserRequest,
    service: NotificationService = Depends(get_notification_service),
):
    envelope = MessageEnvelope(title=payload.title, body=payload.body, data=payload.data)
    try:
        report = service.send_to_tokens(envelope, [payload.token])
    except Exception as exc:
        logger.exception("Error sending message to user")
        raise HTTPException(status_code=500, detail="Failed to send message") from exc
    return _notify_response(report, "No token", with_outcomes=True)


@router.post("/send-to-vets", response_model=NotifyResponse, response_model_exclude_none=True)
def send_to_vets(
    payload: SendToVetsRequest,
    service: NotificationService = Depends(get_notification_service),
):
    envelope = MessageEnvelope(title=payload.title, body=payload.body, data=payload.data)
    try:
        report = service.send_to_tokens(envelope, payload.tokens)
    except Exception as exc:
        logger.exception("Error sending messages to vets", extra={"tokens": len(payload.tokens)})
        raise HTTPException(status_code=500, detail="Failed to send messages") from exc
    return _notify_response(report, "Vet tokens missing")


@router.post("/validate-admin-code", response_model=AdminCodeResponse)
def validate_admin_code(payload: AdminCodeRequest):
    # Plain comparison against a single configured code; no rate limiting.
    valid = payload.code == get_settings().admin_setup_code
    if valid:
        logger.info("Admin code validated")
    else:
        logger.info("Invalid admin code attempt")
    return AdminCodeResponse(valid=valid)
