from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from biofarm_notify.auth import JWTIdentityProvider
from biofarm_notify.models.tables import User
from biofarm_notify.notifications.dispatcher import NotificationDispatcher
from biofarm_notify.notifications.providers import MockNotificationProvider
from biofarm_notify.notifications.resolver import RecipientResolver
from biofarm_notify.notifications.service import NotificationService
from biofarm_notify.storage.repository import UserRepository

TEST_JWT_SECRET = "test-secret"


@pytest.fixture
def session_factory(tmp_path):
    from biofarm_notify.models.db import Base
    from biofarm_notify.models import tables  # noqa: F401

    db_file = tmp_path / "test.db"
    engine = create_engine(f"sqlite:///{db_file}", connect_args={"check_same_thread": False}, future=True)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def add_user(db_session):
    def _add(user_id: str, role: str | None, token: str | None = None, full_name: str | None = None) -> User:
        row = User(id=user_id, role=role, fcm_token=token, full_name=full_name)
        db_session.add(row)
        db_session.commit()
        return row

    return _add


@pytest.fixture
def sender() -> MockNotificationProvider:
    return MockNotificationProvider()


@pytest.fixture
def service(db_session, sender) -> NotificationService:
    users = UserRepository(db_session)
    return NotificationService(users=users, resolver=RecipientResolver(users), dispatcher=NotificationDispatcher(sender))


@pytest.fixture
def test_ctx(tmp_path, monkeypatch) -> Generator[dict, None, None]:
    import biofarm_notify.models.db as db_module
    from biofarm_notify.models.db import Base

    db_file = tmp_path / "api.db"
    engine = create_engine(f"sqlite:///{db_file}", connect_args={"check_same_thread": False}, future=True)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    monkeypatch.setattr(db_module, "engine", engine, raising=False)
    monkeypatch.setattr(db_module, "SessionLocal", TestingSessionLocal, raising=False)

    from biofarm_notify.app import app

    sender = MockNotificationProvider()
    identity_provider = JWTIdentityProvider(TEST_JWT_SECRET)

    with TestClient(app) as client:
        app.state.sender = sender
        app.state.identity_provider = identity_provider
        yield {
            "client": client,
            "sender": sender,
            "identity_provider": identity_provider,
            "session_local": TestingSessionLocal,
            "engine": engine,
        }

    Base.metadata.drop_all(bind=engine)
    engine.dispose()
