from __future__ import annotations

import logging
import threading

import firebase_admin
from firebase_admin import credentials

from biofarm_notify.config import Settings

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "biofarm-notify"
_init_lock = threading.Lock()


def get_firebase_app(settings: Settings) -> firebase_admin.App:
    """Return the process-wide Firebase app, initialising it on first use.

    A service-account file from FIREBASE_CREDENTIALS (or
    GOOGLE_APPLICATION_CREDENTIALS) is preferred; otherwise the ambient
    application-default credentials are used.
    """
    with _init_lock:
        try:
            return firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            logger.info(
                "Initialising Firebase app",
                extra={
                    "project_id": settings.firebase_project_id or None,
                    "has_credentials_file": bool(settings.firebase_credentials),
                },
            )

        if settings.firebase_credentials:
            cred = credentials.Certificate(settings.firebase_credentials)
        else:
            cred = credentials.ApplicationDefault()
        options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
        return firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)
