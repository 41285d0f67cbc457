from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from biofarm_notify.api.deps import get_identity_provider, get_notification_service
from biofarm_notify.auth import BaseIdentityProvider, bearer_token
from biofarm_notify.models.schemas import CallableRequest
from biofarm_notify.notifications.errors import CallableError
from biofarm_notify.notifications.service import NotificationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/callable", tags=["callable"])


def _error_response(exc: CallableError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content={"error": {"status": exc.status, "message": exc.message}},
    )


@router.post("/storeUserToken")
def store_user_token(
    payload: CallableRequest,
    authorization: str | None = Header(default=None),
    identity_provider: BaseIdentityProvider = Depends(get_identity_provider),
    service: NotificationService = Depends(get_notification_service),
):
    identity = identity_provider.verify(bearer_token(authorization))
    try:
        result = service.store_user_token(identity, payload.data)
    except CallableError as exc:
        logger.info("Callable rejected", extra={"callable": "storeUserToken", "code": exc.code})
        return _error_response(exc)
    return {"result": result}
