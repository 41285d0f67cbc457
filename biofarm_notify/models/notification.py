from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MessageEnvelope(BaseModel):
    title: str
    body: str
    data: dict[str, str] = Field(default_factory=dict)


class TokenResult(BaseModel):
    token: str
    message_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SenderResponse(BaseModel):
    provider: str
    success_count: int
    failure_count: int
    results: list[TokenResult] = []
    timestamp: datetime


class SendOutcome(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str
    ok: bool
    error_reason: str | None = None


class DeliveryReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success_count: int = 0
    failure_count: int = 0
    outcomes: list[SendOutcome] = []
    no_recipients: bool = False

    @classmethod
    def empty(cls) -> "DeliveryReport":
        return cls(success_count=0, failure_count=0, no_recipients=True)
