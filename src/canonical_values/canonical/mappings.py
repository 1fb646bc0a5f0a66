"""Mapping canonicals keyed by arbitrary strings."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import fields, is_dataclass
from types import MappingProxyType
from typing import Any

from canonical_values.canonical.base import (
    Canonical,
    PhysicalType,
    SourceKind,
    is_canonical_like,
    to_canonical,
)
from canonical_values.canonical.cursors import (
    MappingEntry,
    mapping_cursor,
    streaming_mapping_cursor,
)
from canonical_values.errors import SourceConsumedError


def _check_entries(entries: Mapping[Any, object], owner: str) -> None:
    for key, value in entries.items():
        if not isinstance(key, str):
            raise TypeError(f"{owner}: keys must be strings, got {type(key).__name__}")
        if not is_canonical_like(value):
            raise TypeError(
                f"{owner}.{key}: expected a canonical or canonical source, "
                f"got {type(value).__name__}"
            )


class _MaterializedMappingCanonical(Canonical):
    __slots__ = ("_entries",)

    _entries: Mapping[str, object]

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.MAPPING

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind.MATERIALIZED

    @property
    def first_mapping_entry(self) -> MappingEntry | None:
        return mapping_cursor(tuple(self._entries.items()))

    @property
    def size(self) -> int:
        return len(self._entries)

    def get_mapping_value(self, key: str) -> Canonical | None:
        value = self._entries.get(key)
        return None if value is None else to_canonical(value)

    def as_dict(self) -> dict[str, Canonical]:
        return {key: to_canonical(value) for key, value in self._entries.items()}


class MapCanonical(_MaterializedMappingCanonical):
    """Mapping that wraps an existing ``Mapping`` without copying it.

    The wrapped mapping must not be modified afterwards.
    """

    __slots__ = ()

    def __init__(self, entries: Mapping[str, object], logical_types: Iterable[str] = ()) -> None:
        super().__init__(logical_types)
        _check_entries(entries, type(self).__name__)
        self._entries = entries

    def as_map(self) -> Mapping[str, Canonical]:
        if all(isinstance(value, Canonical) for value in self._entries.values()):
            return MappingProxyType(self._entries)  # type: ignore[arg-type]
        return super().as_map()


class DictCanonical(_MaterializedMappingCanonical):
    """Mapping built from a private copy of a dict or of an object's attributes."""

    __slots__ = ()

    def __init__(
        self,
        entries: Mapping[str, object] | None = None,
        logical_types: Iterable[str] = (),
    ) -> None:
        super().__init__(logical_types)
        copied = dict(entries or {})
        _check_entries(copied, type(self).__name__)
        self._entries = copied

    @classmethod
    def from_attributes(cls, obj: object, logical_types: Iterable[str] = ()) -> DictCanonical:
        """Build from the public attributes of a dataclass or plain object.

        Attributes holding ``None`` are left out.
        """
        if is_dataclass(obj) and not isinstance(obj, type):
            names = [field.name for field in fields(obj)]
            raw = {name: getattr(obj, name) for name in names}
        else:
            raw = dict(vars(obj))
        entries = {
            key: value
            for key, value in raw.items()
            if not key.startswith("_") and value is not None
        }
        return cls(entries, logical_types)


class StreamingMappingCanonical(Canonical):
    """Mapping over a one-shot iterable of ``(key, value)`` pairs.

    Like :class:`StreamingSequenceCanonical` it hands out a single cursor.
    ``get_mapping_value``, ``as_dict`` and ``equals`` walk that cursor, so the
    first of them spends the source and later reads raise
    :class:`SourceConsumedError`. Use :class:`DictCanonical` for repeated lookups.
    """

    __slots__ = ("_consumed", "_pairs")

    def __init__(
        self,
        pairs: Iterable[tuple[str, object]],
        logical_types: Iterable[str] = (),
    ) -> None:
        super().__init__(logical_types)
        self._pairs = pairs
        self._consumed = False

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.MAPPING

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind.STREAMING

    @property
    def first_mapping_entry(self) -> MappingEntry | None:
        if self._consumed:
            raise SourceConsumedError(
                f"{type(self).__name__}: streaming source already handed out its cursor"
            )
        self._consumed = True
        return streaming_mapping_cursor(self._checked(iter(self._pairs)))

    def _checked(self, pairs: Iterator[tuple[str, object]]) -> Iterator[tuple[str, object]]:
        for key, value in pairs:
            if not is_canonical_like(value):
                raise TypeError(
                    f"{type(self).__name__}.{key}: expected a canonical or canonical source, "
                    f"got {type(value).__name__}"
                )
            yield key, value


__all__ = ["DictCanonical", "MapCanonical", "StreamingMappingCanonical"]
