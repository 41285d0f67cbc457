from __future__ import annotations

import datetime as dt
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


UserRole = Literal["farmer", "veterinarian", "government"]
AlertType = Literal["info", "warning", "alert"]
EventKind = Literal["created", "updated"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


# Stored documents as seen by trigger handlers.


class DocumentModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class VetRequestDocument(DocumentModel):
    farmer_id: str | None = None
    farmer_name: str | None = None
    animal_type: str | None = None
    category: str | None = None
    status: str | None = None


class VetReportDocument(DocumentModel):
    farmer_id: str | None = None
    animal_type: str | None = None
    diagnosis: str | None = None
    treatment: str | None = None


class AlertDocument(DocumentModel):
    user_id: str | None = None
    type: str | None = None
    message: str | None = None


# HTTP notification endpoints.


class FarmersAlertRequest(CamelModel):
    alert_type: str = Field(min_length=1)
    alert_message: str = Field(min_length=1)
    created_by_name: str | None = None


class VetsNewRequestRequest(CamelModel):
    request_id: str | None = None
    farmer_name: str | None = None
    animal_type: str = "animal"
    category: str | None = None
    symptoms: str | None = None
    urgency: str | None = None


class FarmerTreatmentRequest(CamelModel):
    request_id: str | None = None
    farmer_id: str | None = None
    farmer_name: str | None = None
    vet_name: str | None = None
    animal_type: str = "animal"
    diagnosis: str | None = None
    treatment: str | None = None


class SendToUserRequest(CamelModel):
    token: str = Field(min_length=1)
    title: str = ""
    body: str = ""
    data: dict[str, str] = Field(default_factory=dict)


class SendToVetsRequest(CamelModel):
    tokens: list[str] = Field(min_length=1)
    title: str = ""
    body: str = ""
    data: dict[str, str] = Field(default_factory=dict)


class DeliveryOutcomeItem(CamelModel):
    token: str
    ok: bool
    error_reason: str | None = None


class NotifyResponse(CamelModel):
    success: bool
    success_count: int
    failure_count: int
    message: str | None = None
    outcomes: list[DeliveryOutcomeItem] | None = None


class AdminCodeRequest(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    code: str = ""


class AdminCodeResponse(CamelModel):
    valid: bool


# Callable protocol.


class StoreTokenPayload(CamelModel):
    fcm_token: str | None = None


class CallableRequest(BaseModel):
    data: dict[str, Any] | None = None


# Document writes and the change webhook.


class UserProfileRequest(CamelModel):
    id: str = Field(min_length=1)
    role: UserRole
    full_name: str | None = None
    email: str | None = None


class UserProfileResponse(CamelModel):
    id: str
    role: str | None
    full_name: str | None = None
    email: str | None = None
    has_token: bool
    created_at: dt.datetime


class VetRequestCreate(CamelModel):
    farmer_id: str = Field(min_length=1)
    farmer_name: str | None = None
    animal_type: str = Field(min_length=1)
    category: str | None = None
    symptoms: str | None = None
    urgency: str | None = None


class VetRequestStatusUpdate(CamelModel):
    status: str = Field(min_length=1)


class VetRequestResponse(CamelModel):
    id: str
    farmer_id: str
    farmer_name: str | None = None
    animal_type: str
    category: str | None = None
    symptoms: str | None = None
    urgency: str | None = None
    status: str
    created_at: dt.datetime
    updated_at: dt.datetime


class VetReportCreate(CamelModel):
    request_id: str | None = None
    farmer_id: str = Field(min_length=1)
    vet_id: str | None = None
    animal_type: str = Field(min_length=1)
    diagnosis: str = ""
    treatment: str = ""


class VetReportResponse(CamelModel):
    id: str
    request_id: str | None = None
    farmer_id: str
    vet_id: str | None = None
    animal_type: str
    diagnosis: str
    treatment: str
    created_at: dt.datetime


class AlertCreate(CamelModel):
    user_id: str = Field(min_length=1)
    type: AlertType = "info"
    message: str = Field(min_length=1)


class AlertResponse(CamelModel):
    id: str
    user_id: str
    type: str
    message: str
    created_at: dt.datetime


class DocumentEventRequest(CamelModel):
    collection: str = Field(min_length=1)
    event_kind: EventKind
    document_id: str = Field(min_length=1)
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None


class DocumentEventResponse(CamelModel):
    handled: bool
    results: list[dict[str, Any] | None] = []
