from __future__ import annotations

import logging

from biofarm_notify.models.tables import User
from biofarm_notify.notifications.errors import UserNotFound
from biofarm_notify.storage.repository import UserRepository

logger = logging.getLogger(__name__)


def _collect_tokens(users: list[User]) -> list[str]:
    tokens: dict[str, None] = {}
    for user in users:
        if user.fcm_token:
            tokens.setdefault(user.fcm_token, None)
    return list(tokens)


class RecipientResolver:
    def __init__(self, users: UserRepository) -> None:
        self.users = users

    def resolve_by_role(self, role: str) -> list[str]:
        matches = self.users.find_by(role=role)
        tokens = _collect_tokens(matches)
        logger.info(
            "Resolved recipients by role",
            extra={"role": role, "users": len(matches), "tokens": len(tokens)},
        )
        return tokens

    def resolve_by_name(self, role: str, full_name: str) -> list[str]:
        return _collect_tokens(self.users.find_by(role=role, full_name=full_name))

    def resolve_by_user_id(self, user_id: str) -> str | None:
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user.fcm_token or None
