"""Sequence canonicals: array-backed (restartable) and streaming (one-shot)."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from canonical_values.canonical.base import (
    Canonical,
    PhysicalType,
    SourceKind,
    is_canonical_like,
    to_canonical,
)
from canonical_values.canonical.cursors import (
    SequenceItem,
    sequence_cursor,
    streaming_sequence_cursor,
)
from canonical_values.errors import SourceConsumedError


def _check_items(items: tuple[object, ...], owner: str) -> None:
    for index, item in enumerate(items):
        if not is_canonical_like(item):
            raise TypeError(
                f"{owner}[{index}]: expected a canonical or canonical source, "
                f"got {type(item).__name__}"
            )


class ArrayCanonical(Canonical):
    """Sequence over a materialized tuple of canonical-like items.

    Every call to ``first_sequence_item`` starts a fresh, independent cursor.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[object], logical_types: Iterable[str] = ()) -> None:
        super().__init__(logical_types)
        self._items = tuple(items)
        _check_items(self._items, type(self).__name__)

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.SEQUENCE

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind.MATERIALIZED

    @property
    def first_sequence_item(self) -> SequenceItem | None:
        return sequence_cursor(self._items)

    @property
    def size(self) -> int:
        return len(self._items)

    def get_sequence_item(self, index: int) -> Canonical | None:
        if 0 <= index < len(self._items):
            return to_canonical(self._items[index])
        return None

    def as_list(self) -> list[Canonical]:
        return [to_canonical(item) for item in self._items]


class StreamingSequenceCanonical(Canonical):
    """Sequence over a one-shot iterable such as a generator.

    The size is unknown and only one cursor can ever be requested; a second
    request raises :class:`SourceConsumedError`. Items are checked as they are
    produced. ``get_sequence_item``, ``as_list`` and ``equals`` walk that same
    cursor, so any one of them spends the source; wrap the items in an
    :class:`ArrayCanonical` first when they are needed more than once.
    """

    __slots__ = ("_iterable", "_consumed")

    def __init__(self, iterable: Iterable[object], logical_types: Iterable[str] = ()) -> None:
        super().__init__(logical_types)
        self._iterable = iterable
        self._consumed = False

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.SEQUENCE

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind.STREAMING

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def first_sequence_item(self) -> SequenceItem | None:
        if self._consumed:
            raise SourceConsumedError(
                f"{type(self).__name__}: streaming source already handed out its cursor"
            )
        self._consumed = True
        return streaming_sequence_cursor(self._checked(iter(self._iterable)))

    def _checked(self, iterator: Iterator[object]) -> Iterator[object]:
        for index, item in enumerate(iterator):
            if not is_canonical_like(item):
                raise TypeError(
                    f"{type(self).__name__}[{index}]: expected a canonical or canonical "
                    f"source, got {type(item).__name__}"
                )
            yield item


__all__ = ["ArrayCanonical", "StreamingSequenceCanonical"]
