from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .prefs import Prefs

PrefValue = str | bool | int | float | list[str]


class PrefType(str, Enum):
    """Where a preference's value lives.

    - ``LOCAL``: persisted on this device, survives restarts.
    - ``REMOTE``: persisted by the remote backend, synced across devices.
    - ``VOLATILE``: kept in memory for the current session only.
    """

    LOCAL = "local"
    REMOTE = "remote"
    VOLATILE = "volatile"


class Pref(Enum):
    """Base enum for preference declarations.

    Each member is declared as a ``(PrefType, default)`` pair and its name is
    the storage key::

        class AppPrefs(Pref):
            theme = (PrefType.LOCAL, "dark")
            coins = (PrefType.REMOTE, 0)
            session_id = (PrefType.VOLATILE, "")

    Members read and write through an explicit :class:`Prefs` instance.
    """

    storage_type: PrefType
    default_value: Any

    def __new__(cls, *args: Any) -> Pref:
        # Number members so two declarations with equal (type, default) pairs
        # do not collapse into enum aliases.
        obj = object.__new__(cls)
        obj._value_ = len(cls.__members__) + 1
        return obj

    def __init__(self, storage_type: PrefType, default_value: Any) -> None:
        self.storage_type = PrefType(storage_type)
        self.default_value = default_value

    @property
    def key(self) -> str:
        return self.name

    def get(self, prefs: Prefs, default_override: Any = None) -> Any:
        default = self.default_value if default_override is None else default_override
        return prefs.get(self.key, default)

    async def set(self, prefs: Prefs, value: PrefValue) -> None:
        await prefs.set(self.key, value, self.storage_type)

    async def clear(self, prefs: Prefs) -> None:
        """Reset to the declared default."""
        await prefs.set(self.key, self.default_value, self.storage_type)
