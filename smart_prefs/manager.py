from __future__ import annotations

from collections.abc import Iterable

from .errors import DuplicatePrefKeyError
from .pref import Pref, PrefType
from .prefs import Prefs
from .remote.base import RemotePrefs
from .sync.loader import LoadSession


class PrefsManager:
    """Registers preference declarations and runs the one-time startup load.

    ``groups`` is a list of :class:`Pref` enums (or any iterables of members).
    Keys must be unique across all groups; a repeated key raises
    :class:`DuplicatePrefKeyError` here rather than silently changing where
    that key is stored.
    """

    def __init__(
        self,
        remote: RemotePrefs | None,
        groups: Iterable[Iterable[Pref]],
        *,
        prefs: Prefs | None = None,
    ) -> None:
        self.remote = remote
        self.prefs = prefs or Prefs()
        self._preferences: dict[str, Pref] = {}
        for group in groups:
            for pref in group:
                self.register(pref)

    def register(self, pref: Pref) -> None:
        if pref.key in self._preferences:
            raise DuplicatePrefKeyError(pref.key)
        self._preferences[pref.key] = pref

    @property
    def preferences(self) -> list[Pref]:
        return list(self._preferences.values())

    @property
    def declarations(self) -> dict[str, PrefType]:
        return {key: pref.storage_type for key, pref in self._preferences.items()}

    async def init(self, *, wait_for_remote: bool = True) -> LoadSession | None:
        """Attach the remote backend and load every declared preference."""
        if self.remote is not None:
            self.prefs.set_remote_preferences(self.remote)
        return await self.prefs.load_preferences(
            self.declarations, wait_for_remote=wait_for_remote
        )
