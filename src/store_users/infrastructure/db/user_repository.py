"""SQLAlchemy adapter for user record persistence."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, cast

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from store_users.application.ports.user_repository_port import UserRepositoryPort
from store_users.domain.users.errors import (
    AlreadyDeletedError,
    EmailConflictError,
    UserIdConflictError,
    UserNotFoundError,
)
from store_users.domain.users.record import UserRecord
from store_users.infrastructure.db.metadata import users


def _is_duplicate_live_email_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "uq_users_email_live" in message or "users.email" in message


def _is_duplicate_id_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "users_pkey" in message or "users.id" in message


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, record: UserRecord) -> UserRecord:
        """Insert one stamped user row and return the stored record."""

        statement = (
            sa.insert(users)
            .values(
                id=record.id,
                email=record.email,
                last_name=record.last_name,
                password_hash=record.password_hash,
                api_token=record.api_token,
                created_at=record.created_at,
                updated_at=record.updated_at,
                deleted_at=record.deleted_at,
                metadata=record.metadata,
            )
            .returning(*users.c)
        )

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                if _is_duplicate_live_email_error(error):
                    raise EmailConflictError(email=str(record.email)) from error
                if _is_duplicate_id_error(error):
                    raise UserIdConflictError(user_id=str(record.id)) from error
                raise

        return _to_user_record(result.mappings().one())

    async def update(self, *, user_id: str, changes: Mapping[str, Any]) -> UserRecord:
        """Write column changes for one live user and return the stored record.

        Soft-deleted rows are never written; `deleted_at` keeps its first value.
        """

        statement = (
            sa.update(users)
            .where(users.c.id == user_id, users.c.deleted_at.is_(None))
            .values(**changes)
            .returning(*users.c)
        )

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                if _is_duplicate_live_email_error(error):
                    raise EmailConflictError(email=str(changes.get("email"))) from error
                raise

        row = result.mappings().first()
        if row is None:
            if await self.find_by_id(user_id=user_id) is None:
                raise UserNotFoundError(user_id=user_id)
            raise AlreadyDeletedError(user_id=user_id)
        return _to_user_record(row)

    async def find_by_id(self, *, user_id: str) -> UserRecord | None:
        """Return user by id, including soft-deleted users."""

        statement = sa.select(*users.c).where(users.c.id == user_id).limit(1)
        return await self._fetch_one(statement)

    async def find_active_by_email(self, *, email: str) -> UserRecord | None:
        """Return the live user owning a normalized email or None."""

        statement = sa.select(*users.c).where(
            users.c.email == email,
            users.c.deleted_at.is_(None),
        ).limit(1)
        return await self._fetch_one(statement)

    async def find_deleted_by_email(self, *, email: str) -> UserRecord | None:
        """Return the most recently soft-deleted user that owned a normalized email."""

        statement = (
            sa.select(*users.c)
            .where(
                users.c.email == email,
                users.c.deleted_at.is_not(None),
            )
            .order_by(users.c.deleted_at.desc())
            .limit(1)
        )
        return await self._fetch_one(statement)

    async def list_active(self) -> list[UserRecord]:
        """Return live users ordered by identifier."""

        statement = (
            sa.select(*users.c)
            .where(users.c.deleted_at.is_(None))
            .order_by(users.c.id.asc())
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)

        return [_to_user_record(row) for row in result.mappings().all()]

    async def _fetch_one(self, statement: sa.Select[Any]) -> UserRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_user_record(row)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back; stored values are always UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _to_user_record(row: sa.RowMapping) -> UserRecord:
    return UserRecord(
        id=cast(str, row["id"]),
        email=cast(str, row["email"]),
        last_name=cast(str | None, row["last_name"]),
        password_hash=cast(str | None, row["password_hash"]),
        api_token=cast(str | None, row["api_token"]),
        created_at=_as_utc(cast(datetime, row["created_at"])),
        updated_at=_as_utc(cast(datetime, row["updated_at"])),
        deleted_at=_as_utc(cast(datetime | None, row["deleted_at"])),
        metadata=cast(dict[str, Any] | None, row["metadata"]),
    )
