from __future__ import annotations

from types import SimpleNamespace

import pytest
from firebase_admin import exceptions, messaging

from biofarm_notify.config import Settings
from biofarm_notify.models.notification import MessageEnvelope
from biofarm_notify.notifications import providers
from biofarm_notify.notifications.errors import NotificationSenderError
from biofarm_notify.notifications.providers import FCMNotificationProvider, MockNotificationProvider, build_provider


ENVELOPE = MessageEnvelope(title="Alert", body="Check your herd", data={"url": "/dashboard"})
TEST_APP = object()


def _response(token: str):
    if token.startswith("stale"):
        return SimpleNamespace(success=False, message_id=None, exception=messaging.UnregisteredError("not found"))
    return SimpleNamespace(success=True, message_id=f"projects/p/messages/{token}", exception=None)


@pytest.fixture
def captured(monkeypatch):
    calls: list[dict] = []

    def fake_send_each_for_multicast(message, dry_run=False, app=None):
        calls.append({"message": message, "app": app})
        responses = [_response(token) for token in message.tokens]
        successes = sum(1 for r in responses if r.success)
        return SimpleNamespace(success_count=successes, failure_count=len(responses) - successes, responses=responses)

    monkeypatch.setattr(providers.messaging, "send_each_for_multicast", fake_send_each_for_multicast)
    return calls


def test_fcm_multicast_maps_per_token_results(captured) -> None:
    response = FCMNotificationProvider(lambda: TEST_APP).send(ENVELOPE, ["a", "stale-b", "c"])

    assert len(captured) == 1
    message = captured[0]["message"]
    assert captured[0]["app"] is TEST_APP
    assert message.tokens == ["a", "stale-b", "c"]
    assert message.notification.title == "Alert"
    assert message.notification.body == "Check your herd"
    assert message.data == {"url": "/dashboard"}
    assert response.provider == "fcm"
    assert response.success_count == 2
    assert response.failure_count == 1
    assert [(r.token, r.ok) for r in response.results] == [("a", True), ("stale-b", False), ("c", True)]
    assert response.results[0].message_id == "projects/p/messages/a"
    assert response.results[1].error == "UnregisteredError"


def test_fcm_splits_large_batches(captured) -> None:
    tokens = [f"t{i}" for i in range(5)]
    response = FCMNotificationProvider(lambda: TEST_APP, batch_size=2).send(ENVELOPE, tokens)

    assert [len(call["message"].tokens) for call in captured] == [2, 2, 1]
    assert response.success_count == 5
    assert [r.token for r in response.results] == tokens


def test_fcm_batch_size_is_capped_at_multicast_limit() -> None:
    assert FCMNotificationProvider(lambda: TEST_APP, batch_size=10_000).batch_size == 500
    assert FCMNotificationProvider(lambda: TEST_APP, batch_size=0).batch_size == 1


def test_fcm_loads_app_once(captured) -> None:
    loads: list[int] = []

    def loader():
        loads.append(1)
        return TEST_APP

    provider = FCMNotificationProvider(loader)
    provider.send(ENVELOPE, ["a"])
    provider.send(ENVELOPE, ["b"])

    assert len(loads) == 1


def test_fcm_missing_credentials_raises_sender_error(captured) -> None:
    def loader():
        raise ValueError("Invalid service account certificate")

    with pytest.raises(NotificationSenderError) as exc_info:
        FCMNotificationProvider(loader).send(ENVELOPE, ["a"])

    assert exc_info.value.provider == "fcm"
    assert captured == []


def test_fcm_transport_failure_raises_sender_error(monkeypatch) -> None:
    def fake_send_each_for_multicast(message, dry_run=False, app=None):
        raise exceptions.UnavailableError("FCM backend unavailable")

    monkeypatch.setattr(providers.messaging, "send_each_for_multicast", fake_send_each_for_multicast)

    with pytest.raises(NotificationSenderError) as exc_info:
        FCMNotificationProvider(lambda: TEST_APP).send(ENVELOPE, ["a"])
    assert exc_info.value.provider == "fcm"


def test_build_provider_follows_settings() -> None:
    assert isinstance(build_provider(Settings(notification_provider="mock")), MockNotificationProvider)

    provider = build_provider(Settings(notification_provider="fcm", fcm_batch_size=100))
    assert isinstance(provider, FCMNotificationProvider)
    assert provider.batch_size == 100
