from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from biofarm_notify.auth import CallerIdentity
from biofarm_notify.models.notification import DeliveryReport, MessageEnvelope, SendOutcome
from biofarm_notify.models.schemas import AlertDocument, StoreTokenPayload, VetReportDocument, VetRequestDocument
from biofarm_notify.notifications import messages
from biofarm_notify.notifications.dispatcher import NotificationDispatcher
from biofarm_notify.notifications.errors import InternalError, InvalidArgument, Unauthenticated, UserNotFound
from biofarm_notify.notifications.resolver import RecipientResolver
from biofarm_notify.storage.repository import UserRepository

logger = logging.getLogger(__name__)

FARMER = "farmer"
VETERINARIAN = "veterinarian"
COMPLETED = "completed"


class NotificationService:
    def __init__(
        self,
        users: UserRepository,
        resolver: RecipientResolver,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.users = users
        self.resolver = resolver
        self.dispatcher = dispatcher

    # Document triggers

    def notify_vets_on_request(self, request_id: str, data: dict[str, Any] | None) -> DeliveryReport:
        doc = VetRequestDocument.model_validate(data or {})
        logger.info("New vet request created", extra={"request_id": request_id, "farmer_id": doc.farmer_id})
        tokens = self.resolver.resolve_by_role(VETERINARIAN)
        envelope = messages.new_request(request_id, doc.animal_type or "animal", doc.category)
        return self.dispatcher.dispatch_to_set(envelope, tokens)

    def notify_farmer_on_report(self, report_id: str, data: dict[str, Any] | None) -> SendOutcome | None:
        doc = VetReportDocument.model_validate(data or {})
        logger.info("New vet report created", extra={"report_id": report_id, "farmer_id": doc.farmer_id})
        envelope = messages.report_available(report_id, doc.animal_type or "animal")
        return self._send_to_user(doc.farmer_id, envelope)

    def notify_farmer_on_treatment_complete(
        self,
        request_id: str,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
    ) -> SendOutcome | None:
        previous = VetRequestDocument.model_validate(before or {})
        current = VetRequestDocument.model_validate(after or {})
        if previous.status == COMPLETED or current.status != COMPLETED:
            return None

        logger.info("Treatment completed for request", extra={"request_id": request_id})
        envelope = messages.treatment_completed(request_id, current.animal_type or "animal")
        return self._send_to_user(current.farmer_id, envelope)

    def notify_user_on_alert(self, alert_id: str, data: dict[str, Any] | None) -> SendOutcome | None:
        doc = AlertDocument.model_validate(data or {})
        logger.info("New alert created", extra={"alert_id": alert_id, "user_id": doc.user_id})
        envelope = messages.new_alert(alert_id, doc.message or "", doc.type)
        return self._send_to_user(doc.user_id, envelope)

    def _send_to_user(self, user_id: str | None, envelope: MessageEnvelope) -> SendOutcome | None:
        if not user_id:
            logger.warning("Document has no recipient id", extra={"title": envelope.title})
            return None
        try:
            token = self.resolver.resolve_by_user_id(user_id)
        except UserNotFound:
            logger.warning("User document not found", extra={"user_id": user_id})
            return None
        if token is None:
            logger.info("User has no FCM token", extra={"user_id": user_id})
            return None
        return self.dispatcher.dispatch_to_one(envelope, token)

    # Broadcasts

    def notify_farmers_new_alert(
        self,
        alert_type: str,
        alert_message: str,
        created_by_name: str | None = None,
    ) -> DeliveryReport:
        tokens = self.resolver.resolve_by_role(FARMER)
        envelope = messages.farmers_alert_broadcast(alert_type, alert_message, created_by_name)
        return self.dispatcher.dispatch_to_set(envelope, tokens)

    def notify_vets_new_request(
        self,
        animal_type: str,
        category: str | None = None,
        farmer_name: str | None = None,
        request_id: str | None = None,
        symptoms: str | None = None,
        urgency: str | None = None,
    ) -> DeliveryReport:
        tokens = self.resolver.resolve_by_role(VETERINARIAN)
        topic = category or symptoms or urgency or "treatment needed"
        envelope = messages.vets_request_broadcast(request_id, animal_type, topic, farmer_name)
        return self.dispatcher.dispatch_to_set(envelope, tokens)

    def notify_farmer_treatment(
        self,
        animal_type: str,
        farmer_id: str | None = None,
        farmer_name: str | None = None,
        vet_name: str | None = None,
        diagnosis: str | None = None,
        treatment: str | None = None,
        request_id: str | None = None,
    ) -> DeliveryReport:
        if farmer_id:
            token = self.resolver.resolve_by_user_id(farmer_id)
            tokens = [token] if token else []
        elif farmer_name:
            tokens = self.resolver.resolve_by_name(FARMER, farmer_name)
        else:
            tokens = []
        envelope = messages.farmer_treatment_update(request_id, animal_type, vet_name, diagnosis, treatment)
        return self.dispatcher.dispatch_to_set(envelope, tokens)

    def send_to_tokens(self, envelope: MessageEnvelope, tokens: list[str]) -> DeliveryReport:
        return self.dispatcher.dispatch_to_set(envelope, tokens)

    # Callables

    def store_user_token(self, identity: CallerIdentity | None, data: dict[str, Any] | None) -> dict[str, bool]:
        if identity is None:
            raise Unauthenticated("User must be authenticated")

        try:
            payload = StoreTokenPayload.model_validate(data or {})
        except ValidationError as exc:
            raise InvalidArgument("FCM token must be a string") from exc
        if not payload.fcm_token:
            raise InvalidArgument("FCM token is required")

        try:
            self.users.merge_token(identity.uid, payload.fcm_token)
            self.users.db.commit()
        except SQLAlchemyError as exc:
            self.users.db.rollback()
            logger.exception("Error storing FCM token", extra={"user_id": identity.uid})
            raise InternalError("Failed to store token") from exc

        logger.info("FCM token stored for user", extra={"user_id": identity.uid})
        return {"success": True}
