from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class PrefsCache:
    """In-memory mapping from preference key to current value.

    One instance is shared by the whole application and is the single source
    of truth for reads. Writes are plain assignments, so the last write for a
    key wins and a batch of writes is not atomic.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value for ``key``, or ``default``.

        A cached ``None`` is treated as absent.
        """
        value = self._values.get(key)
        return default if value is None else value

    def put(self, key: str, value: Any) -> None:
        self._values[key] = value

    def merge(self, values: Mapping[str, Any]) -> int:
        self._values.update(values)
        return len(values)

    def snapshot(self) -> dict[str, Any]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return self._values.get(key) is not None  # type: ignore[call-overload]
