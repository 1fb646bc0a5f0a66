"""Tagged JSON codec: self-describing, round-trip exact.

Wire format (UTF-8 JSON):

- leaf: ``"<literal> (<types> <char>)"`` where ``<types>`` is the logical type
  chain joined by ``.`` (``-`` when empty) and ``<char>`` is one of ``s`` string,
  ``i`` int, ``f`` float, ``b`` bool, ``m`` moment (epoch milliseconds),
  ``6`` binary (base64). A none value has no literal: ``"(<types> -)"``.
- sequence: ``["<types>", item, item, ...]``
- mapping: ``{"type": "<types>", ":key": value, ...}``
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from collections.abc import Sequence
from typing import Any, Final, NoReturn

import structlog

from canonical_values.canonical.base import (
    Canonical,
    LogicalTypes,
    PhysicalType,
    format_logical_types,
    to_canonical,
)
from canonical_values.canonical.mappings import DictCanonical
from canonical_values.canonical.moments import epoch_ms_text, from_epoch_ms
from canonical_values.canonical.primitives import (
    BinaryCanonical,
    BoolCanonical,
    FloatCanonical,
    IntCanonical,
    MomentCanonical,
    NoneCanonical,
    StringCanonical,
)
from canonical_values.canonical.sequences import ArrayCanonical
from canonical_values.codecs.json_support import JSONValue, dump_json, load_json
from canonical_values.config import CodecSettings, get_active_config
from canonical_values.errors import MalformedEncodingError

TYPE_KEY: Final[str] = "type"
KEY_PREFIX: Final[str] = ":"
EMPTY_TYPES: Final[str] = "-"

_TYPE_CHARS: Final[dict[PhysicalType, str]] = {
    PhysicalType.STRING: "s",
    PhysicalType.INT: "i",
    PhysicalType.FLOAT: "f",
    PhysicalType.BOOL: "b",
    PhysicalType.MOMENT: "m",
    PhysicalType.BINARY: "6",
    PhysicalType.NONE: "-",
}

_LOGICAL_TYPE_RE: Final[re.Pattern[str]] = re.compile(r"^[^\s.()]+$")
_INT_RE: Final[re.Pattern[str]] = re.compile(r"^-?\d+$")
_FLOAT_RE: Final[re.Pattern[str]] = re.compile(
    r"^-?(?:inf|Infinity|nan|NaN|\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)$"
)
_MOMENT_RE: Final[re.Pattern[str]] = re.compile(r"^-?\d+(?:\.\d+)?$")

_LOGGER = structlog.get_logger(__name__)


def encode_types(types: Sequence[str]) -> str:
    """Render a type chain header; names that would break the grammar are rejected."""
    if not types:
        return EMPTY_TYPES
    for entry in types:
        if entry == EMPTY_TYPES or not _LOGICAL_TYPE_RE.match(entry):
            raise MalformedEncodingError(
                f"logical type {entry!r} cannot be encoded in tagged JSON "
                f"(chain {format_logical_types(types)!r})"
            )
    return format_logical_types(types)


def decode_types(header: str, path: str = "$") -> LogicalTypes:
    if header == EMPTY_TYPES:
        return ()
    parts = tuple(header.split("."))
    if any(not part for part in parts):
        _malformed(path, f"invalid type header {header!r}")
    return parts


class TaggedJsonSerializer:
    """Encode canonical-like values into tagged JSON."""

    def __init__(self, settings: CodecSettings | None = None) -> None:
        self._settings = settings if settings is not None else get_active_config().codecs

    def serialize(self, value: object) -> bytes:
        return self.serialize_to_string(value).encode("utf-8")

    def serialize_to_string(self, value: object) -> str:
        return dump_json(
            self.to_native(value),
            indent=self._settings.json_indent,
            ensure_ascii=self._settings.ensure_ascii,
        )

    def to_native(self, value: object) -> JSONValue:
        return self._encode(to_canonical(value))

    def _encode(self, canonical: Canonical) -> JSONValue:
        physical = canonical.physical_type
        header = encode_types(canonical.logical_types)
        if physical is PhysicalType.SEQUENCE:
            return [header, *(self._encode(item) for item in canonical.iter_sequence())]
        if physical is PhysicalType.MAPPING:
            encoded: dict[str, JSONValue] = {TYPE_KEY: header}
            for key, item in canonical.iter_mapping():
                encoded[KEY_PREFIX + key] = self._encode(item)
            return encoded
        if physical is PhysicalType.NONE:
            return f"({header} -)"
        return f"{_leaf_literal(canonical, physical)} ({header} {_TYPE_CHARS[physical]})"


def _leaf_literal(canonical: Canonical, physical: PhysicalType) -> str:
    if physical is PhysicalType.STRING:
        return canonical.string_value
    if physical is PhysicalType.INT:
        return str(canonical.int_value)
    if physical is PhysicalType.FLOAT:
        return repr(canonical.float_value)
    if physical is PhysicalType.BOOL:
        return "true" if canonical.bool_value else "false"
    if physical is PhysicalType.MOMENT:
        return epoch_ms_text(canonical.moment_value)
    if physical is PhysicalType.BINARY:
        return base64.b64encode(canonical.binary_value).decode("ascii")
    raise MalformedEncodingError(f"physical type {physical!r} has no leaf literal")


class TaggedJsonDeserializer:
    """Decode tagged JSON back into materialized canonicals."""

    def deserialize(self, data: bytes | bytearray | str) -> Canonical:
        text = bytes(data).decode("utf-8") if not isinstance(data, str) else data
        return self.deserialize_from_string(text)

    def deserialize_from_string(self, text: str) -> Canonical:
        try:
            native = load_json(text)
        except ValueError as exc:
            _LOGGER.debug("tagged_json_decode_failed", reason=str(exc))
            raise MalformedEncodingError(f"$: invalid JSON ({exc})") from exc
        return self.from_native(native)

    def from_native(self, node: Any, path: str = "$") -> Canonical:
        if isinstance(node, str):
            return decode_leaf(node, path)
        if isinstance(node, list):
            return self._decode_sequence(node, path)
        if isinstance(node, dict):
            return self._decode_mapping(node, path)
        _malformed(path, f"expected string, array or object, got {type(node).__name__}")

    def _decode_sequence(self, node: list[Any], path: str) -> ArrayCanonical:
        if not node or not isinstance(node[0], str):
            _malformed(path, "sequence must start with a type header string")
        types = decode_types(node[0], path)
        items = [
            self.from_native(item, f"{path}[{index}]")
            for index, item in enumerate(node[1:], start=1)
        ]
        return ArrayCanonical(items, types)

    def _decode_mapping(self, node: dict[str, Any], path: str) -> DictCanonical:
        header = node.get(TYPE_KEY)
        if not isinstance(header, str):
            _malformed(path, f"mapping requires a string {TYPE_KEY!r} header")
        types = decode_types(header, path)
        entries: dict[str, Canonical] = {}
        for key, item in node.items():
            if key == TYPE_KEY:
                continue
            if not key.startswith(KEY_PREFIX):
                _malformed(path, f"mapping key {key!r} lacks the {KEY_PREFIX!r} prefix")
            entries[key[len(KEY_PREFIX) :]] = self.from_native(item, f"{path}.{key}")
        return DictCanonical(entries, types)


def decode_leaf(node: str, path: str = "$") -> Canonical:
    """Parse one leaf string, locating the tag by its last ``(`` and last space."""
    if not node.endswith(")"):
        _malformed(path, f"leaf {node!r} does not end with a type tag")
    open_index = node.rfind("(")
    if open_index < 0:
        _malformed(path, f"leaf {node!r} does not contain a type tag")
    tag = node[open_index + 1 : -1]
    space_index = tag.rfind(" ")
    if space_index < 0:
        _malformed(path, f"leaf {node!r} has an incomplete type tag")
    types = decode_types(tag[:space_index], path)
    char = tag[space_index + 1 :]

    if char == "-":
        if open_index != 0:
            _malformed(path, f"none leaf {node!r} must not carry a literal")
        return NoneCanonical(types)
    if open_index == 0 or node[open_index - 1] != " ":
        _malformed(path, f"leaf {node!r} must separate literal and tag with a space")
    literal = node[: open_index - 1]

    if char == "s":
        return StringCanonical(literal, types)
    if char == "i":
        if not _INT_RE.match(literal):
            _malformed(path, f"invalid int literal {literal!r}")
        return IntCanonical(int(literal), types)
    if char == "f":
        if not _FLOAT_RE.match(literal):
            _malformed(path, f"invalid float literal {literal!r}")
        return FloatCanonical(float(literal), types)
    if char == "b":
        if literal not in ("true", "false"):
            _malformed(path, f"invalid bool literal {literal!r}")
        return BoolCanonical(literal == "true", types)
    if char == "m":
        if not _MOMENT_RE.match(literal):
            _malformed(path, f"invalid moment literal {literal!r}")
        try:
            return MomentCanonical(from_epoch_ms(literal), types)
        except ValueError as exc:
            _malformed(path, str(exc))
    if char == "6":
        try:
            return BinaryCanonical(base64.b64decode(literal, validate=True), types)
        except (binascii.Error, ValueError) as exc:
            _malformed(path, f"invalid base64 literal ({exc})")
    _malformed(path, f"unknown type character {char!r}")


def _malformed(path: str, message: str) -> NoReturn:
    raise MalformedEncodingError(f"{path}: {message}")


__all__ = [
    "EMPTY_TYPES",
    "KEY_PREFIX",
    "TYPE_KEY",
    "TaggedJsonDeserializer",
    "TaggedJsonSerializer",
    "decode_leaf",
    "decode_types",
    "encode_types",
]
