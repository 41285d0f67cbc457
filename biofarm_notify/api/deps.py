from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from biofarm_notify.auth import BaseIdentityProvider
from biofarm_notify.models.db import get_db_session
from biofarm_notify.notifications.dispatcher import NotificationDispatcher
from biofarm_notify.notifications.providers import BaseNotificationProvider
from biofarm_notify.notifications.resolver import RecipientResolver
from biofarm_notify.notifications.service import NotificationService
from biofarm_notify.storage.repository import UserRepository
from biofarm_notify.triggers import TriggerRegistry


def get_sender(request: Request) -> BaseNotificationProvider:
    return request.app.state.sender


def get_trigger_registry(request: Request) -> TriggerRegistry:
    return request.app.state.triggers


def get_identity_provider(request: Request) -> BaseIdentityProvider:
    return request.app.state.identity_provider


def get_notification_service(
    db: Session = Depends(get_db_session),
    sender: BaseNotificationProvider = Depends(get_sender),
) -> NotificationService:
    users = UserRepository(db)
    return NotificationService(
        users=users,
        resolver=RecipientResolver(users),
        dispatcher=NotificationDispatcher(sender),
    )
