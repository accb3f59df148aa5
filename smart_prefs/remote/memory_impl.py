from __future__ import annotations

import asyncio
import logging
from typing import Any

from .base import RemotePrefs


class InMemoryRemotePrefs(RemotePrefs):
    """Remote backend simulated with a per-user dict of encoded strings.

    Each value is stored as ``"<data_type>|<value>"`` the way a string-only
    table would hold it, and decoded on fetch. An empty ``user_id`` behaves
    like a signed-out user: ``fetch_all`` returns ``None`` and writes are
    dropped.
    """

    def __init__(
        self,
        user_id: str,
        *,
        database: dict[str, dict[str, str]] | None = None,
        latency_s: float = 0.0,
    ) -> None:
        self.log = logging.getLogger(__name__)
        self.user_id = user_id
        self.database: dict[str, dict[str, str]] = {} if database is None else database
        self.latency_s = latency_s

    async def fetch_all(self) -> dict[str, Any] | None:
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        if not self.user_id:
            return None

        stored = self.database.get(self.user_id)
        if stored is None:
            return {}

        preferences: dict[str, Any] = {}
        for key, raw in stored.items():
            data_type, sep, value = raw.partition("|")
            if not sep:
                continue
            preferences[key] = self.parse_from_string(value, data_type)
        return preferences

    async def upsert(self, key: str, value: Any) -> None:
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        if not self.user_id:
            return

        typed = self.to_typed_value(value)
        self.database.setdefault(self.user_id, {})[key] = f"{typed.data_type}|{typed.value}"
        self.log.debug(
            "remote_upsert",
            extra={"event_type": "remote_upsert", "key": key, "data_type": typed.data_type},
        )
