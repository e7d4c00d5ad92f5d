"""Pydantic models for the user record HTTP surface."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from store_users.domain.users.identifiers import is_user_id


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class UserCreateBody(StrictModel):
    """Request body for user creation."""

    email: str
    password: str | None = None
    last_name: str | None = None
    api_token: str | None = None
    metadata: dict[str, Any] | None = None
    id: str | None = Field(default=None, description="Pre-assigned `usr_` id, e.g. on restore.")

    @field_validator("id")
    @classmethod
    def _require_user_id_shape(cls, value: str | None) -> str | None:
        if value is not None and not is_user_id(value):
            raise ValueError("id must be `usr_` followed by a 26-character ULID")
        return value


class UserPatchBody(StrictModel):
    """Request body for partial user updates; only set fields are applied."""

    id: str | None = None
    created_at: datetime | None = None
    email: str | None = None
    password: str | None = None
    last_name: str | None = None
    api_token: str | None = None
    metadata: dict[str, Any] | None = None


class UserResponse(StrictModel):
    """Default user read model. Never carries the password hash."""

    id: str = Field(description="The unique id of the User, prefixed with `usr_`.")
    email: str
    last_name: str | None
    api_token: str | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    metadata: dict[str, Any] | None


class UserListResponse(StrictModel):
    """Live user listing in creation order."""

    items: list[UserResponse]
    total: int = Field(ge=0)


class CredentialVerifyBody(StrictModel):
    """Email/password pair submitted for verification."""

    email: str
    password: str
