"""Credential verification for trusted internal authentication flows."""

from __future__ import annotations

import logging
from typing import Any

from store_users.application.ports.password_hasher_port import PasswordHasherPort
from store_users.application.ports.user_repository_port import UserRepositoryPort
from store_users.domain.users.credentials import normalize_user_email, normalize_user_password
from store_users.domain.users.errors import UserValidationError
from store_users.domain.users.lifecycle import project_for_read

logger = logging.getLogger(__name__)


class UserCredentialService:
    """Check email/password pairs against live user records."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher

    async def verify_credentials(self, *, email: str, password: str) -> dict[str, Any] | None:
        """Return the default read view when credentials match, otherwise None.

        Soft-deleted users and users without a stored hash never authenticate.
        """

        try:
            normalized_email = normalize_user_email(email=email)
            normalized_password = normalize_user_password(password=password)
        except UserValidationError:
            return None
        if normalized_password is None:
            return None

        user = await self._users.find_active_by_email(email=normalized_email)
        if user is None:
            logger.info("credentials_rejected reason=unknown_email")
            return None

        sensitive = project_for_read(user, include_sensitive=True)
        password_hash = sensitive["password_hash"]
        if not password_hash or not self._password_hasher.verify_password(
            password=normalized_password,
            password_hash=password_hash,
        ):
            logger.info("credentials_rejected user_id=%s reason=invalid_password", user.id)
            return None

        return project_for_read(user)
