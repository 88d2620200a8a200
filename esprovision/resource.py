"""Resource state handling shared by the resource modules."""

from __future__ import annotations

import json
from typing import Any


def normalize_json(value: str | bytes | None) -> str:
    """Return a compact JSON string with sorted keys; empty input gives ''.

    Raises ValueError if the value is not valid JSON.
    """
    if value is None or value == "" or value == b"":
        return ""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc
    return json.dumps(parsed, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class ResourceData:
    """The attributes and identifier of one managed resource."""

    def __init__(self, attributes: dict[str, Any] | None = None, resource_id: str = ""):
        self._attributes = dict(attributes or {})
        self.id = resource_id

    def get(self, key: str) -> Any:
        """Return an attribute, or None if it is not set."""
        return self._attributes.get(key)

    def set(self, key: str, value: Any) -> None:
        """Store an attribute."""
        self._attributes[key] = value