"""Port for user record persistence used by lifecycle services."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from store_users.domain.users.record import UserRecord


class UserRepositoryPort(Protocol):
    """User repository contract.

    Implementations enforce email uniqueness among records whose `deleted_at`
    is null and raise `EmailConflictError` on violation.
    """

    async def insert(self, record: UserRecord) -> UserRecord:
        """Persist a fully stamped record and return the stored row.

        Raises `EmailConflictError` for a live email collision and
        `UserIdConflictError` when the identifier is already stored.
        """

    async def update(self, *, user_id: str, changes: Mapping[str, Any]) -> UserRecord:
        """Write column changes for one live user.

        Raises `UserNotFoundError` when absent and `AlreadyDeletedError` when the
        row is soft-deleted.
        """

    async def find_by_id(self, *, user_id: str) -> UserRecord | None:
        """Return user by id, including soft-deleted users."""

    async def find_active_by_email(self, *, email: str) -> UserRecord | None:
        """Return the live user owning a normalized email or None."""

    async def find_deleted_by_email(self, *, email: str) -> UserRecord | None:
        """Return the most recently soft-deleted user that owned a normalized email."""

    async def list_active(self) -> list[UserRecord]:
        """Return live users in identifier (creation) order."""
