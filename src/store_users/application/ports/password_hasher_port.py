"""Port for turning plaintext passwords into stored `password_hash` values."""

from __future__ import annotations

from typing import Protocol


class PasswordHasherPort(Protocol):
    """Password hashing/verification contract."""

    def hash_password(self, password: str) -> str:
        """Return a salted hash suitable for the `password_hash` column."""

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        """Return whether plaintext matches a stored hash."""
