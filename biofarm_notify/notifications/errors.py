from __future__ import annotations


class NotificationError(RuntimeError):
    pass


class UserNotFound(NotificationError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class DeliveryFailed(NotificationError):
    def __init__(self, token: str, reason: str) -> None:
        super().__init__(reason)
        self.token = token
        self.reason = reason


class NotificationSenderError(NotificationError):
    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message)
        self.provider = provider


class CallableError(Exception):
    """Error surfaced to callers of a callable endpoint.

    ``code`` uses the callable protocol's lower-case names; ``status`` is the
    upper-case form sent on the wire.
    """

    code = "internal"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status(self) -> str:
        return self.code.replace("-", "_").upper()


class Unauthenticated(CallableError):
    code = "unauthenticated"
    http_status = 401


class InvalidArgument(CallableError):
    code = "invalid-argument"
    http_status = 400


class InternalError(CallableError):
    code = "internal"
    http_status = 500
