"""Canonical value core: physical types, logical type chains and accessors.

A canonical value is an immutable tagged union. ``physical_type`` says how the
payload is stored, ``logical_types`` is a chain of semantic tags ordered from
most general to most specific. Payload getters that do not match the physical
type raise :class:`PhysicalTypeMismatchError`.

Logical type chains form a subtype relation: chain ``B`` is a base of chain
``A`` when ``B`` is a prefix of ``A``. The empty chain is a base of every
chain.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    ClassVar,
    Final,
    NoReturn,
    Protocol,
    TypeAlias,
    runtime_checkable,
)

from canonical_values.errors import PhysicalTypeMismatchError

if TYPE_CHECKING:
    from canonical_values.canonical.cursors import MappingEntry, SequenceItem

LogicalTypes: TypeAlias = tuple[str, ...]

_TYPE_SEPARATOR: Final[str] = "."


class PhysicalType(StrEnum):
    NONE = "none"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    MOMENT = "moment"
    BINARY = "binary"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


class SourceKind(StrEnum):
    """How the children of a canonical are produced.

    ``MATERIALIZED`` sources hand out any number of independent cursors.
    ``STREAMING`` sources wrap a one-shot iterator and hand out one cursor.
    Leaves have no children.
    """

    LEAF = "leaf"
    MATERIALIZED = "materialized"
    STREAMING = "streaming"


@runtime_checkable
class CanonicalSource(Protocol):
    """Anything that can yield a canonical representation with one call."""

    def peek_canonical_representation(self) -> Canonical: ...


CanonicalLike: TypeAlias = "Canonical | CanonicalSource"


def types_is(types: Sequence[str], base_types: Sequence[str]) -> bool:
    """Return whether ``base_types`` is a prefix of ``types``.

    Positions are compared from the tail of ``base_types`` because the most
    specific entries are the ones most likely to differ.
    """
    if len(base_types) > len(types):
        return False
    for index in range(len(base_types) - 1, -1, -1):
        if types[index] != base_types[index]:
            return False
    return True


def types_equal(left: Sequence[str], right: Sequence[str]) -> bool:
    return len(left) == len(right) and types_is(left, right)


def format_logical_types(types: Sequence[str]) -> str:
    return _TYPE_SEPARATOR.join(types)


def normalize_logical_types(types: Iterable[str]) -> LogicalTypes:
    normalized = tuple(types)
    for entry in normalized:
        if not isinstance(entry, str):
            raise TypeError(f"logical types must be strings, got {type(entry).__name__}")
    return normalized


def is_canonical_like(value: object) -> bool:
    return isinstance(value, (Canonical, CanonicalSource))


def to_canonical(value: object) -> Canonical:
    """Resolve a canonical or a :class:`CanonicalSource` to a canonical."""
    if isinstance(value, Canonical):
        return value
    if isinstance(value, CanonicalSource):
        resolved = value.peek_canonical_representation()
        if not isinstance(resolved, Canonical):
            raise TypeError(
                f"{type(value).__name__}.peek_canonical_representation() "
                f"returned {type(resolved).__name__}, expected a Canonical"
            )
        return resolved
    raise TypeError(f"expected a canonical or canonical source, got {type(value).__name__}")


class Canonical(ABC):
    """Base class of every canonical value."""

    __slots__ = ("_logical_types",)

    is_flexible: ClassVar[bool] = False

    def __init__(self, logical_types: Iterable[str] = ()) -> None:
        self._logical_types: LogicalTypes = normalize_logical_types(logical_types)

    @property
    @abstractmethod
    def physical_type(self) -> PhysicalType: ...

    @property
    def logical_types(self) -> LogicalTypes:
        return self._logical_types

    def peek_canonical_representation(self) -> Canonical:
        return self

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind.LEAF

    @property
    def none_value(self) -> None:
        self._mismatch(PhysicalType.NONE)

    @property
    def bool_value(self) -> bool:
        self._mismatch(PhysicalType.BOOL)

    @property
    def int_value(self) -> int:
        self._mismatch(PhysicalType.INT)

    @property
    def float_value(self) -> float:
        self._mismatch(PhysicalType.FLOAT)

    @property
    def string_value(self) -> str:
        self._mismatch(PhysicalType.STRING)

    @property
    def moment_value(self) -> datetime:
        self._mismatch(PhysicalType.MOMENT)

    @property
    def binary_value(self) -> bytes:
        self._mismatch(PhysicalType.BINARY)

    @property
    def first_sequence_item(self) -> SequenceItem | None:
        self._mismatch(PhysicalType.SEQUENCE)

    @property
    def first_mapping_entry(self) -> MappingEntry | None:
        self._mismatch(PhysicalType.MAPPING)

    @property
    def size(self) -> int | None:
        """Number of children when known; ``None`` for leaves and streams."""
        return None

    def get_sequence_item(self, index: int) -> Canonical | None:
        if index < 0:
            return None
        for position, item in enumerate(self.iter_sequence()):
            if position == index:
                return item
        return None

    def get_mapping_value(self, key: str) -> Canonical | None:
        for entry_key, value in self.iter_mapping():
            if entry_key == key:
                return value
        return None

    def iter_sequence(self) -> Iterator[Canonical]:
        item = self.first_sequence_item
        while item is not None:
            yield item.value
            item = item.next()

    def iter_mapping(self) -> Iterator[tuple[str, Canonical]]:
        entry = self.first_mapping_entry
        while entry is not None:
            yield entry.key, entry.value
            entry = entry.next()

    def as_list(self) -> list[Canonical]:
        return list(self.iter_sequence())

    def as_dict(self) -> dict[str, Canonical]:
        return dict(self.iter_mapping())

    def as_map(self) -> Mapping[str, Canonical]:
        """Read-only view over the mapping entries."""
        return MappingProxyType(self.as_dict())

    def is_a(self, base: object) -> bool:
        """Subtype test against a canonical-like or an explicit type chain."""
        if isinstance(base, str):
            raise TypeError("base must be a canonical or a sequence of type names, got str")
        if is_canonical_like(base):
            return types_is(self.logical_types, to_canonical(base).logical_types)
        if isinstance(base, Sequence):
            return types_is(self.logical_types, base)
        raise TypeError(f"cannot compare logical types with {type(base).__name__}")

    def equals(self, other: object) -> bool:
        """Same physical type, identical type chain and value-equal payload."""
        if not is_canonical_like(other):
            return False
        resolved = to_canonical(other)
        if resolved is self:
            return True
        if resolved.is_flexible:
            return resolved.equals(self)
        if self.physical_type is not resolved.physical_type:
            return False
        if not types_equal(self.logical_types, resolved.logical_types):
            return False
        return payload_equals(self, resolved, self.physical_type)

    def __eq__(self, other: object) -> bool:
        if not is_canonical_like(other):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        types = format_logical_types(self.logical_types) or "-"
        return f"{type(self).__name__}<{self.physical_type}:{types}>"

    def _mismatch(self, requested: PhysicalType | str) -> NoReturn:
        raise PhysicalTypeMismatchError(
            f'The canonical value with physical type "{self.physical_type}" and '
            f'logical type(s) "{format_logical_types(self.logical_types)}" '
            f"is not a {requested}"
        )


def payload_equals(left: Canonical, right: Canonical, physical_type: PhysicalType) -> bool:
    """Compare payloads of two canonicals read as ``physical_type``."""
    if physical_type is PhysicalType.NONE:
        return left.none_value is None and right.none_value is None
    if physical_type is PhysicalType.BOOL:
        return left.bool_value is right.bool_value
    if physical_type is PhysicalType.INT:
        return left.int_value == right.int_value
    if physical_type is PhysicalType.FLOAT:
        a, b = left.float_value, right.float_value
        return a == b or (math.isnan(a) and math.isnan(b))
    if physical_type is PhysicalType.STRING:
        return left.string_value == right.string_value
    if physical_type is PhysicalType.MOMENT:
        return left.moment_value == right.moment_value
    if physical_type is PhysicalType.BINARY:
        return left.binary_value == right.binary_value
    if physical_type is PhysicalType.SEQUENCE:
        return _sequences_equal(left, right)
    if physical_type is PhysicalType.MAPPING:
        return _mappings_equal(left, right)
    raise ValueError(f"unsupported physical type: {physical_type!r}")


def _sequences_equal(left: Canonical, right: Canonical) -> bool:
    if left.size is not None and right.size is not None and left.size != right.size:
        return False
    left_item = left.first_sequence_item
    right_item = right.first_sequence_item
    while left_item is not None and right_item is not None:
        if not left_item.value.equals(right_item.value):
            return False
        left_item = left_item.next()
        right_item = right_item.next()
    return left_item is None and right_item is None


def _mappings_equal(left: Canonical, right: Canonical) -> bool:
    left_entries = left.as_dict()
    right_entries = right.as_dict()
    if len(left_entries) != len(right_entries):
        return False
    for key, value in left_entries.items():
        counterpart = right_entries.get(key)
        if counterpart is None or not value.equals(counterpart):
            return False
    return True


__all__ = [
    "Canonical",
    "CanonicalLike",
    "CanonicalSource",
    "LogicalTypes",
    "PhysicalType",
    "SourceKind",
    "format_logical_types",
    "is_canonical_like",
    "normalize_logical_types",
    "payload_equals",
    "to_canonical",
    "types_equal",
    "types_is",
]
