from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from firebase_admin import auth as firebase_auth
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError
from jose import JWTError, jwt

from biofarm_notify.config import Settings
from biofarm_notify.firebase_app import get_firebase_app

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    uid: str
    claims: dict[str, Any] = field(default_factory=dict)


class BaseIdentityProvider(ABC):
    @abstractmethod
    def verify(self, token: str | None) -> CallerIdentity | None:
        """Return the caller for a valid bearer token, ``None`` otherwise."""
        raise NotImplementedError


class JWTIdentityProvider(BaseIdentityProvider):
    def __init__(self, secret: str, algorithm: str = "HS256", audience: str | None = None) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience or None

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTIdentityProvider":
        return cls(settings.auth_jwt_secret, settings.auth_jwt_algorithm, settings.auth_jwt_audience)

    def verify(self, token: str | None) -> CallerIdentity | None:
        if not token or not self.secret:
            return None
        options = {"verify_aud": self.audience is not None}
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except JWTError as exc:
            logger.info("Rejected caller token", extra={"error": str(exc)})
            return None

        uid = str(claims.get("sub") or claims.get("uid") or "").strip()
        if not uid:
            return None
        return CallerIdentity(uid=uid, claims=claims)

    def issue(self, uid: str, **claims: Any) -> str:
        return jwt.encode({"sub": uid, **claims}, self.secret, algorithm=self.algorithm)


class FirebaseIdentityProvider(BaseIdentityProvider):
    """Verifies Firebase ID tokens issued to the mobile and web clients."""

    def __init__(self, app_loader: Callable[[], Any], check_revoked: bool = False) -> None:
        self.app_loader = app_loader
        self.check_revoked = check_revoked
        self._app: Any = None

    def verify(self, token: str | None) -> CallerIdentity | None:
        if not token:
            return None
        if self._app is None:
            try:
                self._app = self.app_loader()
            except (ValueError, OSError, GoogleAuthError) as exc:
                logger.error("Firebase app could not be initialised", extra={"error": str(exc)})
                return None
        try:
            claims = firebase_auth.verify_id_token(token, app=self._app, check_revoked=self.check_revoked)
        except (ValueError, FirebaseError, GoogleAuthError) as exc:
            logger.info("Rejected caller token", extra={"error": type(exc).__name__})
            return None

        uid = str(claims.get("uid") or claims.get("sub") or "").strip()
        if not uid:
            return None
        return CallerIdentity(uid=uid, claims=dict(claims))


def build_identity_provider(settings: Settings) -> BaseIdentityProvider:
    if settings.auth_provider == "firebase":
        return FirebaseIdentityProvider(lambda: get_firebase_app(settings))
    return JWTIdentityProvider.from_settings(settings)


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()
