"""Error taxonomy for user record lifecycle operations."""

from __future__ import annotations


class UserLifecycleError(Exception):
    """Base class for user lifecycle failures."""


class UserValidationError(UserLifecycleError, ValueError):
    """Raised when a user record or patch carries invalid field values."""


class ImmutableFieldError(UserValidationError):
    """Raised when a patch attempts to change a write-once field."""

    def __init__(self, *, field_name: str) -> None:
        super().__init__(f"field is immutable: {field_name}")
        self.field_name = field_name


class EmailConflictError(UserLifecycleError):
    """Raised when another live user already owns the email."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"email already in use: {email}")
        self.email = email


class AlreadyDeletedError(UserLifecycleError):
    """Raised when a soft-deleted user is deleted or mutated again."""

    def __init__(self, *, user_id: str) -> None:
        super().__init__(f"user already deleted: {user_id}")
        self.user_id = user_id


class UserNotFoundError(UserLifecycleError, LookupError):
    """Raised when a target user cannot be found."""

    def __init__(self, *, user_id: str) -> None:
        super().__init__(f"user not found: {user_id}")
        self.user_id = user_id


class UserIdConflictError(UserLifecycleError):
    """Raised when a pre-assigned identifier is already stored."""

    def __init__(self, *, user_id: str) -> None:
        super().__init__(f"user id already in use: {user_id}")
        self.user_id = user_id
