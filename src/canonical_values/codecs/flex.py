"""Type-inferring canonical for untyped data such as decoded plain JSON.

A :class:`FlexCanonical` carries no logical types and claims compatibility
with every type chain. Each payload getter coerces the raw value to the
requested physical type when a plausible reading exists, and raises
:class:`PhysicalTypeMismatchError` otherwise. Correctness checking is thereby
deferred to the value objects that finally consume the data.
"""

from __future__ import annotations

import base64
import binascii
import math
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import ClassVar, Final

from canonical_values.canonical.base import Canonical, PhysicalType, payload_equals, to_canonical
from canonical_values.canonical.cursors import (
    MappingEntry,
    SequenceItem,
    mapping_cursor,
    sequence_cursor,
)
from canonical_values.canonical.moments import from_epoch_ms, normalize_moment

_NUMERIC_RE: Final[re.Pattern[str]] = re.compile(r"^\s*-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?\s*$")


class FlexCanonical(Canonical):
    __slots__ = ("_raw",)

    is_flexible: ClassVar[bool] = True

    def __init__(self, raw: object) -> None:
        super().__init__(())
        self._raw = raw

    @property
    def raw(self) -> object:
        return self._raw

    @property
    def physical_type(self) -> PhysicalType:
        """Physical type inferred from the shape of the raw value."""
        raw = self._raw
        if raw is None:
            return PhysicalType.NONE
        if isinstance(raw, bool):
            return PhysicalType.BOOL
        if isinstance(raw, int):
            return PhysicalType.INT
        if isinstance(raw, float):
            return PhysicalType.FLOAT
        if isinstance(raw, str):
            return PhysicalType.STRING
        if isinstance(raw, datetime):
            return PhysicalType.MOMENT
        if isinstance(raw, (bytes, bytearray)):
            return PhysicalType.BINARY
        if isinstance(raw, Mapping):
            return PhysicalType.MAPPING
        if isinstance(raw, (list, tuple)):
            return PhysicalType.SEQUENCE
        raise TypeError(f"FlexCanonical cannot infer a physical type for {type(raw).__name__}")

    @property
    def none_value(self) -> None:
        if self._raw is None or self._raw == "":
            return None
        self._mismatch(PhysicalType.NONE)

    @property
    def bool_value(self) -> bool:
        raw = self._raw
        if isinstance(raw, bool):
            return raw
        if raw == "true":
            return True
        if raw == "false":
            return False
        self._mismatch(PhysicalType.BOOL)

    @property
    def int_value(self) -> int:
        raw = self._raw
        number: float | int | None = None
        if isinstance(raw, bool):
            self._mismatch(PhysicalType.INT)
        if isinstance(raw, int):
            return raw
        if isinstance(raw, float):
            number = raw
        elif isinstance(raw, str) and _NUMERIC_RE.match(raw):
            stripped = raw.strip()
            if re.fullmatch(r"-?\d+", stripped):
                return int(stripped)
            number = float(stripped)
        if number is not None and math.isfinite(number) and number.is_integer():
            return int(number)
        self._mismatch(PhysicalType.INT)

    @property
    def float_value(self) -> float:
        raw = self._raw
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return float(raw)
        if isinstance(raw, str):
            try:
                return float(raw.strip())
            except ValueError:
                pass
        self._mismatch(PhysicalType.FLOAT)

    @property
    def string_value(self) -> str:
        if isinstance(self._raw, str):
            return self._raw
        self._mismatch(PhysicalType.STRING)

    @property
    def moment_value(self) -> datetime:
        raw = self._raw
        if isinstance(raw, datetime):
            return normalize_moment(raw if raw.tzinfo is not None else raw.replace(tzinfo=UTC))
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            try:
                return from_epoch_ms(raw)
            except ValueError:
                self._mismatch(PhysicalType.MOMENT)
        if isinstance(raw, str):
            parsed = _parse_moment_text(raw)
            if parsed is not None:
                return parsed
        self._mismatch(PhysicalType.MOMENT)

    @property
    def binary_value(self) -> bytes:
        raw = self._raw
        if isinstance(raw, (bytes, bytearray)):
            return bytes(raw)
        if isinstance(raw, str):
            try:
                return base64.b64decode(raw, validate=True)
            except (binascii.Error, ValueError):
                pass
        self._mismatch(PhysicalType.BINARY)

    @property
    def first_sequence_item(self) -> SequenceItem | None:
        raw = self._raw
        if isinstance(raw, (list, tuple)):
            return sequence_cursor([FlexCanonical(item) for item in raw])
        self._mismatch(PhysicalType.SEQUENCE)

    @property
    def first_mapping_entry(self) -> MappingEntry | None:
        raw = self._raw
        if isinstance(raw, Mapping):
            return mapping_cursor([(str(key), FlexCanonical(item)) for key, item in raw.items()])
        self._mismatch(PhysicalType.MAPPING)

    @property
    def size(self) -> int | None:
        if isinstance(self._raw, (list, tuple, Mapping)):
            return len(self._raw)
        return None

    def get_sequence_item(self, index: int) -> Canonical | None:
        raw = self._raw
        if isinstance(raw, (list, tuple)) and 0 <= index < len(raw):
            return FlexCanonical(raw[index])
        return super().get_sequence_item(index)

    def get_mapping_value(self, key: str) -> Canonical | None:
        raw = self._raw
        if isinstance(raw, Mapping):
            return FlexCanonical(raw[key]) if key in raw else None
        return super().get_mapping_value(key)

    def is_a(self, base: object) -> bool:
        return True

    def equals(self, other: object) -> bool:
        """Payload equality read under the other side's physical type.

        Logical types are ignored since a flex value has none to compare.
        """
        try:
            resolved = to_canonical(other)
        except TypeError:
            return False
        if isinstance(resolved, FlexCanonical):
            return self._raw == resolved._raw
        try:
            return payload_equals(self, resolved, resolved.physical_type)
        except (TypeError, ValueError):
            return False

    def __repr__(self) -> str:
        return f"FlexCanonical({self._raw!r})"


def _parse_moment_text(text: str) -> datetime | None:
    stripped = text.strip()
    if _NUMERIC_RE.match(stripped):
        try:
            return from_epoch_ms(stripped)
        except ValueError:
            return None
    candidate = stripped[:-1] + "+00:00" if stripped.endswith(("Z", "z")) else stripped
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


__all__ = ["FlexCanonical"]
