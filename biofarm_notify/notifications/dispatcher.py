from __future__ import annotations

import logging

from biofarm_notify.models.notification import DeliveryReport, MessageEnvelope, SendOutcome
from biofarm_notify.notifications.errors import DeliveryFailed, NotificationSenderError
from biofarm_notify.notifications.providers import BaseNotificationProvider

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, sender: BaseNotificationProvider) -> None:
        self.sender = sender

    def dispatch_to_set(self, envelope: MessageEnvelope, tokens: list[str]) -> DeliveryReport:
        targets = list(dict.fromkeys(token for token in tokens if token))
        if not targets:
            logger.info("No recipients for notification", extra={"title": envelope.title})
            return DeliveryReport.empty()

        try:
            response = self.sender.send(envelope, targets)
        except NotificationSenderError as exc:
            logger.exception(
                "Notification batch failed",
                extra={"provider": exc.provider, "title": envelope.title, "tokens": len(targets)},
            )
            return DeliveryReport(
                success_count=0,
                failure_count=len(targets),
                outcomes=[SendOutcome(token=token, ok=False, error_reason=str(exc)) for token in targets],
            )

        outcomes = [
            SendOutcome(token=result.token, ok=result.ok, error_reason=result.error) for result in response.results
        ]
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    "Notification rejected for token",
                    extra={"provider": response.provider, "error_reason": outcome.error_reason},
                )
        logger.info(
            "Notification batch sent",
            extra={
                "provider": response.provider,
                "title": envelope.title,
                "success_count": response.success_count,
                "failure_count": response.failure_count,
            },
        )
        return DeliveryReport(
            success_count=response.success_count,
            failure_count=response.failure_count,
            outcomes=outcomes,
        )

    def dispatch_to_one(self, envelope: MessageEnvelope, token: str) -> SendOutcome:
        try:
            message_id = self._send_one(envelope, token)
        except DeliveryFailed as exc:
            logger.warning(
                "Notification delivery failed",
                extra={"title": envelope.title, "error_reason": exc.reason},
            )
            return SendOutcome(token=token, ok=False, error_reason=exc.reason)

        logger.info("Notification sent", extra={"title": envelope.title, "message_id": message_id})
        return SendOutcome(token=token, ok=True)

    def _send_one(self, envelope: MessageEnvelope, token: str) -> str | None:
        try:
            response = self.sender.send(envelope, [token])
        except NotificationSenderError as exc:
            raise DeliveryFailed(token, str(exc)) from exc

        if not response.results:
            raise DeliveryFailed(token, "Sender returned no result")
        result = response.results[0]
        if not result.ok:
            raise DeliveryFailed(token, result.error or "Unknown error")
        return result.message_id
