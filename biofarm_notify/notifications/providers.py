from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from biofarm_notify.config import Settings
from biofarm_notify.firebase_app import get_firebase_app
from biofarm_notify.models.notification import MessageEnvelope, SenderResponse, TokenResult
from biofarm_notify.notifications.errors import NotificationSenderError
from biofarm_notify.utils.time import utc_now

logger = logging.getLogger(__name__)


class BaseNotificationProvider(ABC):
    name: str = "base"

    @abstractmethod
    def send(self, envelope: MessageEnvelope, tokens: list[str]) -> SenderResponse:
        raise NotImplementedError


class MockNotificationProvider(BaseNotificationProvider):
    name = "mock"

    def __init__(self, rejected_tokens: dict[str, str] | None = None) -> None:
        self.rejected_tokens = dict(rejected_tokens or {})
        self.calls: list[tuple[MessageEnvelope, list[str]]] = []

    def send(self, envelope: MessageEnvelope, tokens: list[str]) -> SenderResponse:
        self.calls.append((envelope, list(tokens)))
        results = [
            TokenResult(token=token, error=self.rejected_tokens[token])
            if token in self.rejected_tokens
            else TokenResult(token=token, message_id=f"mock-{len(self.calls)}-{idx}")
            for idx, token in enumerate(tokens)
        ]
        failures = sum(1 for result in results if not result.ok)
        return SenderResponse(
            provider=self.name,
            success_count=len(results) - failures,
            failure_count=failures,
            results=results,
            timestamp=utc_now(),
        )


class FCMNotificationProvider(BaseNotificationProvider):
    """Sends through Firebase Cloud Messaging with the Admin SDK.

    Tokens go out as multicast messages of at most ``MAX_MULTICAST_TOKENS``
    each; per-token results are returned in token order.
    """

    name = "fcm"
    MAX_MULTICAST_TOKENS = 500

    def __init__(self, app_loader: Callable[[], Any], batch_size: int = MAX_MULTICAST_TOKENS) -> None:
        self.app_loader = app_loader
        self.batch_size = min(max(1, batch_size), self.MAX_MULTICAST_TOKENS)
        self._app: Any = None

    def send(self, envelope: MessageEnvelope, tokens: list[str]) -> SenderResponse:
        app = self._resolve_app()
        success_count = 0
        failure_count = 0
        results: list[TokenResult] = []
        for start in range(0, len(tokens), self.batch_size):
            batch = tokens[start : start + self.batch_size]
            try:
                batch_response = messaging.send_each_for_multicast(self._build_message(envelope, batch), app=app)
            except (FirebaseError, GoogleAuthError) as exc:
                raise NotificationSenderError(self.name, f"FCM request failed: {type(exc).__name__}") from exc
            success_count += batch_response.success_count
            failure_count += batch_response.failure_count
            results.extend(self._parse_results(batch, batch_response.responses))

        return SenderResponse(
            provider=self.name,
            success_count=success_count,
            failure_count=failure_count,
            results=results,
            timestamp=utc_now(),
        )

    def _resolve_app(self) -> Any:
        if self._app is None:
            try:
                self._app = self.app_loader()
            except (ValueError, OSError, GoogleAuthError) as exc:
                logger.error("Firebase app could not be initialised", extra={"error": str(exc)})
                raise NotificationSenderError(self.name, "Firebase credentials are unavailable") from exc
        return self._app

    @staticmethod
    def _build_message(envelope: MessageEnvelope, tokens: list[str]) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=envelope.title, body=envelope.body),
            data=dict(envelope.data),
        )

    @staticmethod
    def _parse_results(tokens: list[str], responses: list[Any]) -> list[TokenResult]:
        parsed: list[TokenResult] = []
        for idx, token in enumerate(tokens):
            if idx >= len(responses):
                parsed.append(TokenResult(token=token, error="MissingResult"))
                continue
            resp = responses[idx]
            if resp.success:
                parsed.append(TokenResult(token=token, message_id=resp.message_id))
            else:
                error = type(resp.exception).__name__ if resp.exception is not None else "UnknownError"
                parsed.append(TokenResult(token=token, error=error))
        return parsed


def build_provider(settings: Settings) -> BaseNotificationProvider:
    if settings.notification_provider == "fcm":
        return FCMNotificationProvider(lambda: get_firebase_app(settings), batch_size=settings.fcm_batch_size)
    return MockNotificationProvider()
