"""Dot-notation lookups into JSON data sources."""
from __future__ import annotations

import json
from typing import Any, Mapping, Sequence


class _Missing:
    """Marker for a path that does not resolve to a value."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def resolve_path(value: Any, path: str) -> Any:
    """Extract a value from nested dicts/lists using a dot-notation path.

    ``resolve_path({"users": [{"name": "Ada"}]}, "users.0.name")`` returns
    ``"Ada"``. Any missing key, out-of-range index, or attempt to index into
    ``None`` or a primitive yields :data:`MISSING`; the function never raises.
    """
    if not path:
        return MISSING

    current = value
    for segment in path.split("."):
        if current is None or current is MISSING:
            return MISSING
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not segment.isdigit():
                return MISSING
            index = int(segment)
            if index >= len(current):
                return MISSING
            current = current[index]
        else:
            return MISSING
    return current


def resolve_binding_value(data_sources: Mapping[str, Any], source_id: str, path: str) -> Any:
    """Resolve ``path`` inside the data source registered under ``source_id``."""
    if source_id not in data_sources:
        return MISSING
    return resolve_path(data_sources[source_id], path)


def stringify(value: Any) -> str:
    """Render a resolved JSON value as the text shown in the document."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
