"""Plain JSON codec: native shape only, logical types are dropped.

Strings stay strings; ints, floats and bools are written as the string of
their literal (``"12"``, ``"12.5"``, ``"true"``); binary becomes base64; a
moment becomes an epoch-millisecond number; sequences and mappings become
arrays and objects. None is ``null`` inside arrays and left out of objects.
Decoding yields a :class:`FlexCanonical` which re-types lazily.
"""

from __future__ import annotations

import base64

from canonical_values.canonical.base import Canonical, PhysicalType, to_canonical
from canonical_values.canonical.moments import epoch_ms
from canonical_values.codecs.flex import FlexCanonical
from canonical_values.codecs.json_support import JSONValue, dump_json, load_json
from canonical_values.config import CodecSettings, get_active_config
from canonical_values.errors import MalformedEncodingError


class PlainJsonSerializer:
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
        return _encode(to_canonical(value))


def _encode(canonical: Canonical) -> JSONValue:
    physical = canonical.physical_type
    if physical is PhysicalType.NONE:
        return None
    if physical is PhysicalType.STRING:
        return canonical.string_value
    if physical is PhysicalType.INT:
        return str(canonical.int_value)
    if physical is PhysicalType.FLOAT:
        return repr(canonical.float_value)
    if physical is PhysicalType.BOOL:
        return "true" if canonical.bool_value else "false"
    if physical is PhysicalType.MOMENT:
        return epoch_ms(canonical.moment_value)
    if physical is PhysicalType.BINARY:
        return base64.b64encode(canonical.binary_value).decode("ascii")
    if physical is PhysicalType.SEQUENCE:
        return [_encode(item) for item in canonical.iter_sequence()]
    if physical is PhysicalType.MAPPING:
        encoded: dict[str, JSONValue] = {}
        for key, item in canonical.iter_mapping():
            if item.physical_type is PhysicalType.NONE:
                continue
            encoded[key] = _encode(item)
        return encoded
    raise ValueError(f"unsupported physical type: {physical!r}")


class PlainJsonDeserializer:
    def deserialize(self, data: bytes | bytearray | str) -> FlexCanonical:
        text = bytes(data).decode("utf-8") if not isinstance(data, str) else data
        return self.deserialize_from_string(text)

    def deserialize_from_string(self, text: str) -> FlexCanonical:
        try:
            return FlexCanonical(load_json(text))
        except ValueError as exc:
            raise MalformedEncodingError(f"$: invalid JSON ({exc})") from exc

    def from_native(self, value: object) -> FlexCanonical:
        return FlexCanonical(value)


__all__ = ["PlainJsonDeserializer", "PlainJsonSerializer"]
