"""Identifier assignment, lifecycle timestamps and read projection for user records.

Every operation here is pure apart from reading the clock: records are frozen
dataclasses and each step returns a new record. Timestamp columns are maintained
explicitly by these calls, never by storage-side defaults or ORM hooks.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import asdict, replace
from datetime import UTC, datetime
from typing import Any

from store_users.domain.users.errors import (
    AlreadyDeletedError,
    ImmutableFieldError,
    UserValidationError,
)
from store_users.domain.users.identifiers import MonotonicUlidFactory, new_user_id
from store_users.domain.users.record import (
    IMMUTABLE_FIELDS,
    MUTABLE_FIELDS,
    SENSITIVE_FIELDS,
    UserRecord,
)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class UserLifecycle:
    """Apply identity and temporal rules to user records."""

    def __init__(
        self,
        *,
        clock: Clock = utc_now,
        id_factory: MonotonicUlidFactory | None = None,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory

    def prepare_for_insert(self, candidate: UserRecord) -> UserRecord:
        """Assign a new `usr_` identifier unless the candidate already carries one."""

        if candidate.id:
            return candidate
        return replace(candidate, id=new_user_id(factory=self._id_factory))

    def on_create(self, candidate: UserRecord) -> UserRecord:
        """Stamp creation timestamps on a prepared candidate.

        Email uniqueness is not checked here; the storage insert enforces it.
        """

        if not candidate.email or not candidate.email.strip():
            raise UserValidationError("email is required")
        if not candidate.id:
            raise UserValidationError("id must be assigned before create")

        now = self._clock()
        return replace(candidate, created_at=now, updated_at=now, deleted_at=None)

    def on_update(self, existing: UserRecord, patch: Mapping[str, Any]) -> UserRecord:
        """Apply patch fields and refresh `updated_at`, even for an empty patch."""

        if existing.is_deleted:
            raise AlreadyDeletedError(user_id=str(existing.id))

        changes: dict[str, Any] = {}
        for field_name, value in patch.items():
            if field_name in IMMUTABLE_FIELDS:
                if value != getattr(existing, field_name):
                    raise ImmutableFieldError(field_name=field_name)
                continue
            if field_name not in MUTABLE_FIELDS:
                raise UserValidationError(f"field cannot be updated: {field_name}")
            changes[field_name] = value

        if "email" in changes and (not changes["email"] or not str(changes["email"]).strip()):
            raise UserValidationError("email cannot be blank")

        now = self._clock()
        if existing.updated_at is not None and now < existing.updated_at:
            now = existing.updated_at
        return replace(existing, **changes, updated_at=now)

    def soft_delete(self, existing: UserRecord) -> UserRecord:
        """Set `deleted_at` and leave `updated_at` untouched."""

        if existing.is_deleted:
            raise AlreadyDeletedError(user_id=str(existing.id))
        return replace(existing, deleted_at=self._clock())


def project_for_read(record: UserRecord, *, include_sensitive: bool = False) -> dict[str, Any]:
    """Return the record as a mapping, omitting sensitive keys unless asked."""

    view = asdict(record)
    if not include_sensitive:
        for field_name in SENSITIVE_FIELDS:
            view.pop(field_name, None)
    return view
