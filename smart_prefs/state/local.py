"""Local persistence for ``PrefType.LOCAL`` preferences."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Protocol

from ..errors import ErrorCategory


class LocalStore(Protocol):
    """Device-local key/value storage."""

    def get(self, key: str) -> Any:
        """Return the stored value for ``key`` or ``None``."""

    def set(self, key: str, value: Any) -> bool:
        """Persist ``value`` and report whether it was written."""


class MemoryLocalStore(LocalStore):
    """Dict-backed store for tests and ephemeral runs."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.values: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self.values.get(key)

    def set(self, key: str, value: Any) -> bool:
        self.values[key] = value
        return True


class JsonFileLocalStore(LocalStore):
    """Persist local preferences as a single JSON object on disk.

    The file is read lazily on first access. Writes go to a temporary file
    which then replaces the original, so a crash mid-write leaves the previous
    contents intact.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()
        self._values: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._values is not None:
            return self._values
        values: dict[str, Any] = {}
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                logging.getLogger(__name__).warning(
                    "local_store_unreadable",
                    extra={
                        "event_type": "local_store_unreadable",
                        "path": str(self.path),
                        "error_category": ErrorCategory.LOCAL.value,
                    },
                )
            else:
                if isinstance(data, dict):
                    values = data
        self._values = values
        return values

    def get(self, key: str) -> Any:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: Any) -> bool:
        with self._lock:
            values = self._load()
            updated = {**values, key: value}
            tmp = self.path.with_name(self.path.name + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(json.dumps(updated, ensure_ascii=False, indent=2), encoding="utf-8")
                os.replace(tmp, self.path)
            except OSError:
                logging.getLogger(__name__).warning(
                    "local_store_write_failed",
                    extra={
                        "event_type": "local_store_write_failed",
                        "key": key,
                        "path": str(self.path),
                        "error_category": ErrorCategory.LOCAL.value,
                    },
                )
                return False
            self._values = updated
            return True
