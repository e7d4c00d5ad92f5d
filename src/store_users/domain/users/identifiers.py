"""Prefixed, time-sortable identifiers for user records."""

from __future__ import annotations

import re
import threading

from ulid import ULID

USER_ID_PREFIX = "usr_"
_ULID_PATTERN = re.compile(r"[0-7][0-9A-HJKMNP-TV-Z]{25}")


class MonotonicUlidFactory:
    """Issue ULIDs that strictly increase within one process.

    Tokens minted in the same millisecond as the previous one are derived by
    incrementing the previous token, so lexicographic order follows issue order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last: ULID | None = None

    def new(self) -> ULID:
        with self._lock:
            candidate = ULID()
            last = self._last
            if last is not None and candidate.milliseconds <= last.milliseconds:
                candidate = ULID.from_int(int(last) + 1)
            self._last = candidate
            return candidate


_default_factory = MonotonicUlidFactory()


def new_user_id(*, factory: MonotonicUlidFactory | None = None) -> str:
    """Return a new `usr_`-prefixed identifier."""

    ulid = (factory or _default_factory).new()
    return f"{USER_ID_PREFIX}{ulid}"


def is_user_id(value: str) -> bool:
    """Return whether value has the user identifier shape."""

    if not value.startswith(USER_ID_PREFIX):
        return False
    return _ULID_PATTERN.fullmatch(value[len(USER_ID_PREFIX):]) is not None
