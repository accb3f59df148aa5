"""Typed string encoding for backends that store everything as text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

ValueKind = Literal["string", "bool", "int", "double", "string_list"]


@dataclass(frozen=True)
class TypedValue:
    """A value's string form paired with its type tag."""

    data_type: str
    value: str

    def to_map(self) -> dict[str, str]:
        return {"value": self.value, "data_type": self.data_type}

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> TypedValue:
        return cls(
            data_type=str(data.get("data_type", "string")),
            value=str(data.get("value", "")),
        )


def kind_of(value: Any) -> ValueKind | None:
    """Return the preference kind of ``value`` or ``None`` if unsupported.

    ``bool`` is checked before ``int`` because it is a subclass of it.
    """
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return "string_list"
    return None


def encode(value: Any) -> TypedValue:
    """Classify ``value`` and render it as a :class:`TypedValue`.

    Anything that is not a bool, int or float is tagged ``"string"`` using
    ``str(value)``. That fallback cannot be decoded back to the original
    object.
    """
    if isinstance(value, bool):
        return TypedValue("bool", "true" if value else "false")
    if isinstance(value, int):
        return TypedValue("int", str(value))
    if isinstance(value, float):
        return TypedValue("double", str(value))
    return TypedValue("string", str(value))


def decode(value: str, data_type: str) -> Any:
    """Parse ``value`` according to ``data_type``. Never raises.

    Malformed numbers decode to zero. Digit-group underscores, which Python's
    own parsers would accept, count as malformed.
    """
    if data_type == "bool":
        return value.lower() == "true"
    if data_type == "int":
        if "_" in value:
            return 0
        try:
            return int(value.strip(), 10)
        except ValueError:
            return 0
    if data_type == "double":
        if "_" in value:
            return 0.0
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return value
