"""Application service for user record create/update/soft-delete use-cases."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from store_users.application.ports.password_hasher_port import PasswordHasherPort
from store_users.application.ports.user_repository_port import UserRepositoryPort
from store_users.domain.users.credentials import normalize_user_email, normalize_user_password
from store_users.domain.users.errors import EmailConflictError, UserNotFoundError
from store_users.domain.users.lifecycle import UserLifecycle, project_for_read
from store_users.domain.users.record import UserRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserCreateRequest:
    """Caller-facing input for one user creation."""

    email: str | None
    password: str | None = None
    last_name: str | None = None
    api_token: str | None = None
    metadata: dict[str, Any] | None = None
    user_id: str | None = None


class UserLifecycleService:
    """Run lifecycle rules over user records and persist the results."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        lifecycle: UserLifecycle | None = None,
        allow_deleted_email_reuse: bool = True,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._lifecycle = lifecycle or UserLifecycle()
        self._allow_deleted_email_reuse = allow_deleted_email_reuse

    async def create_user(self, *, payload: UserCreateRequest) -> UserRecord:
        """Create one user and return the persisted record."""

        email = normalize_user_email(email=payload.email)
        password = normalize_user_password(password=payload.password)
        await self._require_email_reusable(email=email)

        candidate = UserRecord(
            id=payload.user_id,
            email=email,
            last_name=payload.last_name,
            password_hash=self._password_hasher.hash_password(password) if password else None,
            api_token=payload.api_token,
            metadata=payload.metadata,
        )
        prepared = self._lifecycle.prepare_for_insert(candidate)
        created = await self._users.insert(self._lifecycle.on_create(prepared))

        logger.info("user_created user_id=%s", created.id)
        return created

    async def update_user(self, *, user_id: str, patch: Mapping[str, Any]) -> UserRecord:
        """Apply a field patch to one user.

        A plaintext `password` entry is hashed into `password_hash` before the
        lifecycle rules see the patch.
        """

        existing = await self._require_existing_user(user_id=user_id)
        normalized_patch = dict(patch)
        if "email" in normalized_patch:
            normalized_patch["email"] = normalize_user_email(email=normalized_patch["email"])
            if normalized_patch["email"] != existing.email:
                await self._require_email_reusable(email=normalized_patch["email"])
        if "password" in normalized_patch:
            password = normalize_user_password(password=normalized_patch.pop("password"))
            normalized_patch["password_hash"] = (
                self._password_hasher.hash_password(password) if password else None
            )

        updated = self._lifecycle.on_update(existing, normalized_patch)
        changes = {
            field_name: getattr(updated, field_name)
            for field_name in normalized_patch
            if field_name not in ("id", "created_at")
        }
        changes["updated_at"] = updated.updated_at
        stored = await self._users.update(user_id=user_id, changes=changes)

        logger.info(
            "user_updated user_id=%s fields=%s",
            user_id,
            ",".join(sorted(field for field in changes if field != "updated_at")) or "-",
        )
        return stored

    async def soft_delete_user(self, *, user_id: str) -> UserRecord:
        """Mark one user deleted; the row remains readable by id."""

        existing = await self._require_existing_user(user_id=user_id)
        deleted = self._lifecycle.soft_delete(existing)
        stored = await self._users.update(
            user_id=user_id,
            changes={"deleted_at": deleted.deleted_at},
        )

        logger.info("user_soft_deleted user_id=%s", user_id)
        return stored

    async def get_user(self, *, user_id: str) -> UserRecord:
        """Return one user by id, including soft-deleted users."""

        return await self._require_existing_user(user_id=user_id)

    async def get_user_view(
        self,
        *,
        user_id: str,
        include_sensitive: bool = False,
    ) -> dict[str, Any]:
        """Return the read projection of one user."""

        user = await self._require_existing_user(user_id=user_id)
        return project_for_read(user, include_sensitive=include_sensitive)

    async def list_active_users(self) -> list[UserRecord]:
        """Return live users in creation order."""

        return await self._users.list_active()

    async def _require_existing_user(self, *, user_id: str) -> UserRecord:
        user = await self._users.find_by_id(user_id=user_id)
        if user is None:
            raise UserNotFoundError(user_id=user_id)
        return user

    async def _require_email_reusable(self, *, email: str) -> None:
        """Reject emails of soft-deleted users when reuse is disabled."""

        if self._allow_deleted_email_reuse:
            return
        if await self._users.find_deleted_by_email(email=email) is not None:
            raise EmailConflictError(email=email)
