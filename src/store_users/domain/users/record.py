"""User record value type."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

SENSITIVE_FIELDS = frozenset({"password_hash"})
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})
MUTABLE_FIELDS = frozenset({"email", "last_name", "password_hash", "api_token", "metadata"})


@dataclass(frozen=True)
class UserRecord:
    """User persistence model.

    `id` and the timestamps are `None` only on candidates that have not been
    through insert preparation yet.
    """

    email: str | None
    id: str | None = None
    last_name: str | None = None
    password_hash: str | None = None
    api_token: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
