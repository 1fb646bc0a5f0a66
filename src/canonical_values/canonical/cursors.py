"""Forward-only cursors over the children of sequence and mapping canonicals."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence

from canonical_values.canonical.base import Canonical, to_canonical

_UNSET = object()


class SequenceItem:
    """Cursor positioned on one sequence element.

    ``next()`` returns the cursor of the following element, or ``None`` at the
    end. The successor is computed once, so repeated calls agree even when the
    cursor wraps a one-shot iterator. Cursors are not safe to advance from
    several threads at once.
    """

    __slots__ = ("_advance", "_next", "_value")

    def __init__(self, value: object, advance: Callable[[], SequenceItem | None]) -> None:
        self._value = value
        self._advance: Callable[[], SequenceItem | None] | None = advance
        self._next: object = _UNSET

    @property
    def value(self) -> Canonical:
        return to_canonical(self._value)

    def next(self) -> SequenceItem | None:
        if self._next is _UNSET:
            advance = self._advance
            self._advance = None
            self._next = advance() if advance is not None else None
        return self._next  # type: ignore[return-value]


class MappingEntry:
    """Cursor positioned on one mapping entry; same contract as ``SequenceItem``."""

    __slots__ = ("_advance", "_key", "_next", "_value")

    def __init__(
        self,
        key: str,
        value: object,
        advance: Callable[[], MappingEntry | None],
    ) -> None:
        self._key = key
        self._value = value
        self._advance: Callable[[], MappingEntry | None] | None = advance
        self._next: object = _UNSET

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> Canonical:
        return to_canonical(self._value)

    def next(self) -> MappingEntry | None:
        if self._next is _UNSET:
            advance = self._advance
            self._advance = None
            self._next = advance() if advance is not None else None
        return self._next  # type: ignore[return-value]


def sequence_cursor(items: Sequence[object], start: int = 0) -> SequenceItem | None:
    """Cursor over a materialized sequence; cheap to request again."""
    if start >= len(items):
        return None
    return SequenceItem(items[start], lambda: sequence_cursor(items, start + 1))


def streaming_sequence_cursor(iterator: Iterator[object]) -> SequenceItem | None:
    try:
        value = next(iterator)
    except StopIteration:
        return None
    return SequenceItem(value, lambda: streaming_sequence_cursor(iterator))


def mapping_cursor(
    entries: Sequence[tuple[str, object]],
    start: int = 0,
) -> MappingEntry | None:
    if start >= len(entries):
        return None
    key, value = entries[start]
    return MappingEntry(key, value, lambda: mapping_cursor(entries, start + 1))


def streaming_mapping_cursor(iterator: Iterator[tuple[str, object]]) -> MappingEntry | None:
    try:
        key, value = next(iterator)
    except StopIteration:
        return None
    if not isinstance(key, str):
        raise TypeError(f"mapping keys must be strings, got {type(key).__name__}")
    return MappingEntry(key, value, lambda: streaming_mapping_cursor(iterator))


__all__ = [
    "MappingEntry",
    "SequenceItem",
    "mapping_cursor",
    "sequence_cursor",
    "streaming_mapping_cursor",
    "streaming_sequence_cursor",
]
