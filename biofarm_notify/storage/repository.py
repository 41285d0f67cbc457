from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from biofarm_notify.models.tables import Alert, User, VetReport, VetRequest
from biofarm_notify.utils.time import utc_now


def _insert_for(db: Session):
    if db.get_bind().dialect.name == "postgresql":
        return postgresql_insert
    return sqlite_insert


class UserRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def find_by(self, **fields: Any) -> list[User]:
        stmt = select(User)
        for name, value in fields.items():
            stmt = stmt.where(getattr(User, name) == value)
        return list(self.db.execute(stmt.order_by(User.created_at.asc(), User.id.asc())).scalars())

    def upsert_profile(
        self,
        user_id: str,
        role: str,
        full_name: str | None = None,
        email: str | None = None,
    ) -> tuple[User, bool]:
        row = self.get(user_id)
        created = row is None
        if row is None:
            row = User(id=user_id, role=role, full_name=full_name, email=email)
        else:
            row.role = role
            if full_name is not None:
                row.full_name = full_name
            if email is not None:
                row.email = email
        self.db.add(row)
        return row, created

    def merge_token(self, user_id: str, token: str, updated_at: datetime | None = None) -> User:
        stamp = updated_at or utc_now()
        # A token identifies one installation, so any previous holder loses it.
        self.db.execute(
            update(User)
            .where(User.fcm_token == token, User.id != user_id)
            .values(fcm_token=None, fcm_token_updated_at=stamp)
        )
        stmt = _insert_for(self.db)(User).values(
            id=user_id,
            fcm_token=token,
            fcm_token_updated_at=stamp,
            created_at=stamp,
        )
        self.db.execute(
            stmt.on_conflict_do_update(
                index_elements=[User.id],
                set_={"fcm_token": token, "fcm_token_updated_at": stamp},
            )
        )
        return self.db.get(User, user_id, populate_existing=True)


class VetRequestRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, request_id: str) -> VetRequest | None:
        return self.db.get(VetRequest, request_id)

    def add(self, **fields: Any) -> VetRequest:
        row = VetRequest(**fields)
        self.db.add(row)
        return row


class VetReportRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, **fields: Any) -> VetReport:
        row = VetReport(**fields)
        self.db.add(row)
        return row


class AlertRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, **fields: Any) -> Alert:
        row = Alert(**fields)
        self.db.add(row)
        return row
