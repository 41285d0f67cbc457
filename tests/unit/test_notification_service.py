from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from biofarm_notify.auth import CallerIdentity
from biofarm_notify.models.tables import User
from biofarm_notify.notifications.errors import InternalError, InvalidArgument, Unauthenticated, UserNotFound


def test_new_request_notifies_only_vets_with_tokens(service, sender, add_user) -> None:
    add_user("F1", "farmer", "tok-farmer")
    add_user("V1", "veterinarian", "tokA")
    add_user("V2", "veterinarian", None)

    report = service.notify_vets_on_request("R1", {"farmerId": "F1", "animalType": "Cow", "category": "Fever"})

    assert len(sender.calls) == 1
    envelope, tokens = sender.calls[0]
    assert set(tokens) == {"tokA"}
    assert envelope.title == "New Animal Treatment Request"
    assert envelope.body == "A farmer needs help with Cow - Fever"
    assert envelope.data["requestId"] == "R1"
    assert envelope.data["url"] == "/vet-requests"
    assert report.success_count == 1
    assert report.failure_count == 0


def test_new_request_without_vet_tokens_is_no_recipients(service, sender, add_user) -> None:
    add_user("V2", "veterinarian", None)

    report = service.notify_vets_on_request("R1", {"farmerId": "F1", "animalType": "Goat"})

    assert sender.calls == []
    assert report.no_recipients is True


def test_report_created_notifies_farmer(service, sender, add_user) -> None:
    add_user("F1", "farmer", "tok-farmer")

    outcome = service.notify_farmer_on_report("REP1", {"farmerId": "F1", "animalType": "Sheep"})

    assert outcome is not None and outcome.ok
    envelope, tokens = sender.calls[0]
    assert tokens == ["tok-farmer"]
    assert envelope.body == "Treatment report available for your Sheep"
    assert envelope.data == {"reportId": "REP1", "animalType": "Sheep", "entityType": "vetReport", "url": "/farmer/requests"}


def test_report_for_unknown_farmer_returns_none(service, sender) -> None:
    assert service.notify_farmer_on_report("REP1", {"farmerId": "ghost", "animalType": "Sheep"}) is None
    assert sender.calls == []


def test_report_for_farmer_without_token_returns_none(service, sender, add_user) -> None:
    add_user("F1", "farmer", None)

    assert service.notify_farmer_on_report("REP1", {"farmerId": "F1"}) is None
    assert sender.calls == []


@pytest.mark.parametrize("previous", ["pending", "in_progress", None])
def test_transition_into_completed_sends_once(service, sender, add_user, previous) -> None:
    add_user("F1", "farmer", "tok-farmer")

    outcome = service.notify_farmer_on_treatment_complete(
        "R1",
        {"farmerId": "F1", "animalType": "Cow", "status": previous},
        {"farmerId": "F1", "animalType": "Cow", "status": "completed"},
    )

    assert outcome is not None and outcome.ok
    assert len(sender.calls) == 1
    assert sender.calls[0][0].title == "Treatment Completed!"


def test_completed_to_completed_does_not_send(service, sender, add_user) -> None:
    add_user("F1", "farmer", "tok-farmer")
    doc = {"farmerId": "F1", "animalType": "Cow", "status": "completed"}

    assert service.notify_farmer_on_treatment_complete("R1", doc, dict(doc, category="Fever")) is None
    assert sender.calls == []


def test_transition_to_other_status_does_not_send(service, sender, add_user) -> None:
    add_user("F1", "farmer", "tok-farmer")

    outcome = service.notify_farmer_on_treatment_complete(
        "R1",
        {"farmerId": "F1", "status": "pending"},
        {"farmerId": "F1", "status": "in_progress"},
    )

    assert outcome is None
    assert sender.calls == []


def test_alert_created_notifies_user(service, sender, add_user) -> None:
    add_user("U1", "government", "tok-gov")

    outcome = service.notify_user_on_alert("A1", {"userId": "U1", "message": "Vaccination drive tomorrow"})

    assert outcome is not None and outcome.ok
    envelope, _ = sender.calls[0]
    assert envelope.title == "New Alert"
    assert envelope.body == "Vaccination drive tomorrow"
    assert envelope.data["type"] == "info"
    assert envelope.data["alertId"] == "A1"


def test_farmers_alert_broadcast_title_by_type(service, sender, add_user) -> None:
    add_user("F1", "farmer", "tok-1")
    add_user("V1", "veterinarian", "tok-v")

    report = service.notify_farmers_new_alert("warning", "Heavy rain expected", "District Office")

    envelope, tokens = sender.calls[0]
    assert tokens == ["tok-1"]
    assert envelope.title == "Warning Alert"
    assert envelope.body == "District Office: Heavy rain expected"
    assert report.success_count == 1


def test_farmer_treatment_by_unknown_id_raises(service) -> None:
    with pytest.raises(UserNotFound):
        service.notify_farmer_treatment(animal_type="Cow", farmer_id="ghost")


def test_farmer_treatment_without_target_is_no_recipients(service, sender) -> None:
    report = service.notify_farmer_treatment(animal_type="Cow", vet_name="Dr. Mensah")

    assert report.no_recipients is True
    assert sender.calls == []


def test_store_user_token_is_idempotent(service, db_session, add_user) -> None:
    add_user("F1", "farmer", None)
    identity = CallerIdentity(uid="F1")

    assert service.store_user_token(identity, {"fcmToken": "tok-new"}) == {"success": True}
    assert service.store_user_token(identity, {"fcmToken": "tok-new"}) == {"success": True}

    db_session.expire_all()
    row = db_session.get(User, "F1")
    assert row.fcm_token == "tok-new"
    assert row.fcm_token_updated_at is not None
    assert row.role == "farmer"


def test_store_user_token_creates_missing_user(service, db_session) -> None:
    service.store_user_token(CallerIdentity(uid="new-user"), {"fcmToken": "tok"})

    db_session.expire_all()
    assert db_session.get(User, "new-user").fcm_token == "tok"


def test_store_user_token_moves_token_from_previous_holder(service, db_session, add_user) -> None:
    add_user("old", "farmer", "shared-device")
    add_user("new", "farmer", None)

    service.store_user_token(CallerIdentity(uid="new"), {"fcmToken": "shared-device"})

    db_session.expire_all()
    assert db_session.get(User, "old").fcm_token is None
    assert db_session.get(User, "new").fcm_token == "shared-device"


def test_store_user_token_requires_identity(service, db_session) -> None:
    with pytest.raises(Unauthenticated):
        service.store_user_token(None, {"fcmToken": "tok"})
    assert db_session.query(User).count() == 0


@pytest.mark.parametrize("data", [None, {}, {"fcmToken": ""}, {"fcmToken": "   "}, {"fcmToken": 42}])
def test_store_user_token_requires_token(service, data) -> None:
    with pytest.raises(InvalidArgument):
        service.store_user_token(CallerIdentity(uid="F1"), data)


def test_store_user_token_store_failure_is_internal(service, monkeypatch) -> None:
    def _boom(*args, **kwargs):
        raise OperationalError("UPDATE users", {}, Exception("database is locked"))

    monkeypatch.setattr(service.users, "merge_token", _boom)

    with pytest.raises(InternalError):
        service.store_user_token(CallerIdentity(uid="F1"), {"fcmToken": "tok"})
