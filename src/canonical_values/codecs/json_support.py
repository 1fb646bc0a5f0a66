"""Shared JSON dumping and loading for the codecs."""

from __future__ import annotations

import json
from typing import Any

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


def dump_json(value: JSONValue, *, indent: int | None = None, ensure_ascii: bool = False) -> str:
    """Deterministic JSON: sorted keys, compact separators unless indented."""
    if indent is None:
        return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=ensure_ascii)
    return json.dumps(value, sort_keys=True, indent=indent, ensure_ascii=ensure_ascii)


def load_json(text: str) -> Any:
    """Parse JSON text; raises ``ValueError`` (``json.JSONDecodeError``) on bad input."""
    return json.loads(text)


__all__ = ["JSONScalar", "JSONValue", "dump_json", "load_json"]
