from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

import pytest

from store_users.application.ports.password_hasher_port import PasswordHasherPort
from store_users.application.services.credential_service import UserCredentialService
from store_users.application.services.user_lifecycle_service import (
    UserCreateRequest,
    UserLifecycleService,
)
from store_users.domain.users.errors import (
    AlreadyDeletedError,
    EmailConflictError,
    ImmutableFieldError,
    UserNotFoundError,
    UserValidationError,
)
from store_users.domain.users.record import UserRecord
from store_users.infrastructure.security.password_hasher import BcryptPasswordHasher


@dataclass
class FakeUserRepository:
    users: dict[str, UserRecord] = field(default_factory=dict)
    update_calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def _live_email_taken(self, *, email: str | None, except_id: str | None = None) -> bool:
        return any(
            user.email == email and not user.is_deleted and user.id != except_id
            for user in self.users.values()
        )

    async def insert(self, record: UserRecord) -> UserRecord:
        if self._live_email_taken(email=record.email):
            raise EmailConflictError(email=str(record.email))
        assert record.id is not None
        self.users[record.id] = record
        return record

    async def update(self, *, user_id: str, changes: Mapping[str, Any]) -> UserRecord:
        self.update_calls.append((user_id, dict(changes)))
        existing = self.users.get(user_id)
        if existing is None:
            raise UserNotFoundError(user_id=user_id)
        if existing.is_deleted:
            raise AlreadyDeletedError(user_id=user_id)
        if "email" in changes and self._live_email_taken(
            email=changes["email"],
            except_id=user_id,
        ):
            raise EmailConflictError(email=str(changes["email"]))
        updated = replace(existing, **changes)
        self.users[user_id] = updated
        return updated

    async def find_by_id(self, *, user_id: str) -> UserRecord | None:
        return self.users.get(user_id)

    async def find_active_by_email(self, *, email: str) -> UserRecord | None:
        for user in self.users.values():
            if user.email == email and not user.is_deleted:
                return user
        return None

    async def find_deleted_by_email(self, *, email: str) -> UserRecord | None:
        for user in self.users.values():
            if user.email == email and user.is_deleted:
                return user
        return None

    async def list_active(self) -> list[UserRecord]:
        return sorted(
            (user for user in self.users.values() if not user.is_deleted),
            key=lambda item: str(item.id),
        )


class FakePasswordHasher:
    def __init__(self) -> None:
        self.hash_calls: list[str] = []

    def hash_password(self, password: str) -> str:
        self.hash_calls.append(password)
        return f"hashed::{password}"

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed::{password}"


def _service(
    users: FakeUserRepository,
    *,
    password_hasher: PasswordHasherPort | None = None,
    allow_deleted_email_reuse: bool = True,
) -> UserLifecycleService:
    return UserLifecycleService(
        users=users,
        password_hasher=password_hasher or FakePasswordHasher(),
        allow_deleted_email_reuse=allow_deleted_email_reuse,
    )


@pytest.mark.asyncio
async def test_create_user_assigns_id_and_equal_timestamps() -> None:
    users = FakeUserRepository()
    service = _service(users)

    created = await service.create_user(payload=UserCreateRequest(email="a@x.com"))

    assert created.id is not None and created.id.startswith("usr_")
    assert len(created.id) == len("usr_") + 26
    assert created.created_at == created.updated_at
    assert created.deleted_at is None
    assert users.users[created.id] == created


@pytest.mark.asyncio
async def test_create_user_normalizes_email_and_hashes_password() -> None:
    users = FakeUserRepository()
    password_hasher = FakePasswordHasher()
    service = _service(users, password_hasher=password_hasher)

    created = await service.create_user(
        payload=UserCreateRequest(email=" Ada@Example.org ", password="  s3cret  ")
    )

    assert created.email == "ada@example.org"
    assert created.password_hash == "hashed::s3cret"
    assert password_hasher.hash_calls == ["s3cret"]


@pytest.mark.asyncio
async def test_create_user_keeps_supplied_id() -> None:
    users = FakeUserRepository()
    service = _service(users)

    created = await service.create_user(
        payload=UserCreateRequest(email="a@x.com", user_id="usr_01HXRESTOREDUSER000000000")
    )

    assert created.id == "usr_01HXRESTOREDUSER000000000"


@pytest.mark.asyncio
async def test_create_user_rejects_blank_email_without_touching_storage() -> None:
    users = FakeUserRepository()
    password_hasher = FakePasswordHasher()
    service = _service(users, password_hasher=password_hasher)

    with pytest.raises(UserValidationError):
        await service.create_user(payload=UserCreateRequest(email="  ", password="pw"))

    assert users.users == {}
    assert password_hasher.hash_calls == []


@pytest.mark.asyncio
async def test_second_live_user_with_same_email_conflicts() -> None:
    service = _service(FakeUserRepository())
    await service.create_user(payload=UserCreateRequest(email="a@x.com"))

    with pytest.raises(EmailConflictError):
        await service.create_user(payload=UserCreateRequest(email="A@x.com"))


@pytest.mark.asyncio
async def test_soft_deleted_email_is_reusable_by_default() -> None:
    users = FakeUserRepository()
    service = _service(users)
    first = await service.create_user(payload=UserCreateRequest(email="a@x.com"))
    assert first.id is not None
    await service.soft_delete_user(user_id=first.id)

    second = await service.create_user(payload=UserCreateRequest(email="a@x.com"))

    assert second.id != first.id
    assert [user.id for user in await service.list_active_users()] == [second.id]


@pytest.mark.asyncio
async def test_soft_deleted_email_reuse_can_be_disabled() -> None:
    service = _service(FakeUserRepository(), allow_deleted_email_reuse=False)
    first = await service.create_user(payload=UserCreateRequest(email="a@x.com"))
    assert first.id is not None
    await service.soft_delete_user(user_id=first.id)

    with pytest.raises(EmailConflictError):
        await service.create_user(payload=UserCreateRequest(email="a@x.com"))


@pytest.mark.asyncio
async def test_update_user_writes_changed_fields_and_updated_at() -> None:
    users = FakeUserRepository()
    service = _service(users)
    created = await service.create_user(payload=UserCreateRequest(email="a@x.com"))
    assert created.id is not None and created.updated_at is not None

    updated = await service.update_user(
        user_id=created.id,
        patch={"last_name": "Lovelace", "password": " new-pass "},
    )

    assert updated.last_name == "Lovelace"
    assert updated.password_hash == "hashed::new-pass"
    assert updated.updated_at is not None
    assert updated.updated_at >= created.updated_at
    assert updated.created_at == created.created_at
    _, changes = users.update_calls[-1]
    assert set(changes) == {"last_name", "password_hash", "updated_at"}


@pytest.mark.asyncio
async def test_update_user_rejects_id_change_without_writing() -> None:
    users = FakeUserRepository()
    service = _service(users)
    created = await service.create_user(payload=UserCreateRequest(email="a@x.com"))
    assert created.id is not None

    with pytest.raises(ImmutableFieldError):
        await service.update_user(user_id=created.id, patch={"id": "usr_other"})

    assert users.update_calls == []
    assert users.users[created.id] == created


@pytest.mark.asyncio
async def test_update_user_raises_not_found_for_unknown_user() -> None:
    service = _service(FakeUserRepository())

    with pytest.raises(UserNotFoundError):
        await service.update_user(user_id="usr_missing", patch={"last_name": "x"})


@pytest.mark.asyncio
async def test_update_user_email_conflict_propagates() -> None:
    service = _service(FakeUserRepository())
    await service.create_user(payload=UserCreateRequest(email="a@x.com"))
    other = await service.create_user(payload=UserCreateRequest(email="b@x.com"))
    assert other.id is not None

    with pytest.raises(EmailConflictError):
        await service.update_user(user_id=other.id, patch={"email": "a@x.com"})


@pytest.mark.asyncio
async def test_soft_delete_user_keeps_updated_at_and_rejects_second_delete() -> None:
    users = FakeUserRepository()
    service = _service(users)
    created = await service.create_user(payload=UserCreateRequest(email="a@x.com"))
    assert created.id is not None

    deleted = await service.soft_delete_user(user_id=created.id)

    assert deleted.deleted_at is not None
    assert deleted.updated_at == created.updated_at
    assert users.update_calls[-1] == (created.id, {"deleted_at": deleted.deleted_at})

    with pytest.raises(AlreadyDeletedError):
        await service.soft_delete_user(user_id=created.id)
    assert users.users[created.id].deleted_at == deleted.deleted_at


@pytest.mark.asyncio
async def test_soft_deleted_user_remains_retrievable_by_id() -> None:
    service = _service(FakeUserRepository())
    created = await service.create_user(payload=UserCreateRequest(email="a@x.com"))
    assert created.id is not None
    await service.soft_delete_user(user_id=created.id)

    fetched = await service.get_user(user_id=created.id)

    assert fetched.is_deleted is True
    assert await service.list_active_users() == []


@pytest.mark.asyncio
async def test_get_user_view_hides_password_hash_by_default() -> None:
    service = _service(FakeUserRepository())
    created = await service.create_user(
        payload=UserCreateRequest(email="a@x.com", password="pw")
    )
    assert created.id is not None

    default_view = await service.get_user_view(user_id=created.id)
    sensitive_view = await service.get_user_view(user_id=created.id, include_sensitive=True)

    assert "password_hash" not in default_view
    assert sensitive_view["password_hash"] == "hashed::pw"


@pytest.mark.asyncio
async def test_padded_password_round_trips_through_bcrypt_on_create_and_update() -> None:
    users = FakeUserRepository()
    password_hasher = BcryptPasswordHasher(rounds=4)
    service = _service(users, password_hasher=password_hasher)
    credentials = UserCredentialService(users=users, password_hasher=password_hasher)
    created = await service.create_user(
        payload=UserCreateRequest(email="a@x.com", password=" secret ")
    )
    assert created.id is not None

    assert await credentials.verify_credentials(email="a@x.com", password=" secret ") is not None
    assert await credentials.verify_credentials(email="a@x.com", password="secret") is not None

    await service.update_user(user_id=created.id, patch={"password": "  rotated\t"})

    assert await credentials.verify_credentials(email="a@x.com", password="  rotated\t") is not None
    assert await credentials.verify_credentials(email="a@x.com", password=" secret ") is None
