from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from biofarm_notify.models.db import Base
from biofarm_notify.utils.time import utc_now


def _new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    role: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    fcm_token: Mapped[str | None] = mapped_column(String(512), nullable=True, index=True)
    fcm_token_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "full_name": self.full_name,
            "email": self.email,
            "fcm_token": self.fcm_token,
            "fcm_token_updated_at": self.fcm_token_updated_at,
            "created_at": self.created_at,
        }


class VetRequest(Base):
    __tablename__ = "vet_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    farmer_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    farmer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    animal_type: Mapped[str] = mapped_column(String(64), nullable=False)
    category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    symptoms: Mapped[str | None] = mapped_column(Text, nullable=True)
    urgency: Mapped[str | None] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "farmer_id": self.farmer_id,
            "farmer_name": self.farmer_name,
            "animal_type": self.animal_type,
            "category": self.category,
            "symptoms": self.symptoms,
            "urgency": self.urgency,
            "status": self.status,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class VetReport(Base):
    __tablename__ = "vet_reports"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    farmer_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    vet_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    animal_type: Mapped[str] = mapped_column(String(64), nullable=False)
    diagnosis: Mapped[str] = mapped_column(Text, nullable=False, default="")
    treatment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "request_id": self.request_id,
            "farmer_id": self.farmer_id,
            "vet_id": self.vet_id,
            "animal_type": self.animal_type,
            "diagnosis": self.diagnosis,
            "treatment": self.treatment,
            "created_at": self.created_at,
        }


class Alert(Base):
    __tablename__ = "alerts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="info")
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "message": self.message,
            "created_at": self.created_at,
        }
