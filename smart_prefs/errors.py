from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """Classification for error logging."""

    NETWORK = "network"
    REMOTE = "remote"
    LOCAL = "local"
    CODEC = "codec"
    CALLBACK = "callback"


class DuplicatePrefKeyError(ValueError):
    """Raised when two declared preferences share a key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Preference key {key!r} is declared more than once")
        self.key = key
