"""Bcrypt adapter for the user `password_hash` column."""

from __future__ import annotations

import bcrypt

from store_users.application.ports.password_hasher_port import PasswordHasherPort

# bcrypt only consumes the first 72 bytes of input.
_BCRYPT_MAX_BYTES = 72


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using bcrypt."""

    def __init__(self, *, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        encoded = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        encoded = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError:
            return False
