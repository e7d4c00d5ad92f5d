"""Normalization helpers for user email and password inputs."""

from __future__ import annotations

from store_users.domain.users.errors import UserValidationError


def normalize_user_email(*, email: str | None) -> str:
    """Return the lower-cased, stripped email or raise when it is missing."""

    normalized = (email or "").strip().lower()
    if not normalized:
        raise UserValidationError("email is required")
    return normalized


def normalize_user_password(*, password: str | None) -> str | None:
    """Return the stripped plaintext password, `None` when not supplied.

    Hashing and verification both go through this helper, so stored hashes
    always match the stripped form.
    """

    if password is None:
        return None
    normalized = password.strip()
    if not normalized:
        raise UserValidationError("password cannot be blank")
    return normalized
