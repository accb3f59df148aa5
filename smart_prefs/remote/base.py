from __future__ import annotations

from typing import Any, Protocol

from ..codec import TypedValue, decode, encode


class RemotePrefs(Protocol):
    """Backend that stores ``PrefType.REMOTE`` preferences for the current user.

    Implementations connect to whatever service holds the data. ``fetch_all``
    returns ``None`` when the backend is not ready (for example the user has
    not signed in yet) and ``{}`` when it is ready but nothing is stored.
    """

    async def fetch_all(self) -> dict[str, Any] | None:  # noqa: D401
        """Fetch every remote preference for the current identity."""

    async def upsert(self, key: str, value: Any) -> None:
        """Create or replace a single remote preference."""

    def to_typed_value(self, value: Any) -> TypedValue:
        return encode(value)

    def parse_from_string(self, value: str, data_type: str) -> Any:
        return decode(value, data_type)
