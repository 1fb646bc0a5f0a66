"""
canonical-values persistence boundary.

Purpose
- Store canonical values under a partition plus an ordered, multi-part sort key.

What should be included in this file
- Order-preserving sort-key encoding (``encode_sort_key`` / ``decode_sort_key``).
- The ``CanonicalStore`` protocol.
- An in-memory reference store and a SQLite-backed store, both keeping
  tagged-JSON bytes.

Functional requirements
- ``query`` honours ``start`` (inclusive), ``end`` (exclusive), ``prefix``
  (whole components), ``descending`` and ``limit``.
- A stored value loads back ``equals`` to what was stored.

Non-functional requirements
- Encoded keys compare like the component tuples they encode, both as ``str``
  and as UTF-8 bytes.
"""

from __future__ import annotations

import bisect
import sqlite3
import threading
from collections.abc import Iterator, Sequence
from pathlib import Path
from types import TracebackType
from typing import Final, Protocol, runtime_checkable

import structlog

from canonical_values.canonical.base import Canonical, CanonicalLike, to_canonical
from canonical_values.codecs.tagged_json import TaggedJsonDeserializer, TaggedJsonSerializer
from canonical_values.config import CodecSettings

SortKey = tuple[str, ...]

_SEPARATOR: Final[str] = "\x00"
_ESCAPE: Final[str] = "\x01"
_PREFIX_END: Final[str] = "\x01"

_LOGGER = structlog.get_logger(__name__)


def encode_sort_key(parts: Sequence[str]) -> str:
    """Join key components so that string order equals component-tuple order."""
    if isinstance(parts, str):
        raise TypeError("sort key must be a sequence of strings, got str")
    encoded: list[str] = []
    for part in parts:
        if not isinstance(part, str):
            raise TypeError(f"sort key components must be strings, got {type(part).__name__}")
        encoded.append(part.replace("\x01", "\x01\x03").replace("\x00", "\x01\x02"))
    if not encoded:
        raise ValueError("sort key must have at least one component")
    return _SEPARATOR.join(encoded)


def decode_sort_key(key: str) -> SortKey:
    if key == "":
        return ("",)
    parts: list[str] = []
    for chunk in key.split(_SEPARATOR):
        decoded: list[str] = []
        index = 0
        while index < len(chunk):
            char = chunk[index]
            if char != _ESCAPE:
                decoded.append(char)
                index += 1
                continue
            marker = chunk[index + 1] if index + 1 < len(chunk) else ""
            if marker == "\x02":
                decoded.append("\x00")
            elif marker == "\x03":
                decoded.append("\x01")
            else:
                raise ValueError(f"invalid escape sequence in sort key at offset {index}")
            index += 2
        parts.append("".join(decoded))
    return tuple(parts)


def _key_range(
    start: Sequence[str] | None,
    end: Sequence[str] | None,
    prefix: Sequence[str] | None,
) -> tuple[str | None, str | None]:
    """Lower bound (inclusive) and upper bound (exclusive) of the encoded keys."""
    low = None if start is None else encode_sort_key(start)
    high = None if end is None else encode_sort_key(end)
    if prefix:
        encoded_prefix = encode_sort_key(prefix)
        prefix_end = encoded_prefix + _PREFIX_END
        low = encoded_prefix if low is None else max(low, encoded_prefix)
        high = prefix_end if high is None else min(high, prefix_end)
    return low, high


def _validate_limit(limit: int | None) -> None:
    if limit is not None and limit <= 0:
        raise ValueError("limit must be > 0")


@runtime_checkable
class CanonicalStore(Protocol):
    def store(self, partition: str, sort_key: Sequence[str], value: CanonicalLike) -> None: ...

    def load(self, partition: str, sort_key: Sequence[str]) -> Canonical | None: ...

    def delete(self, partition: str, sort_key: Sequence[str]) -> bool: ...

    def query(
        self,
        partition: str,
        *,
        start: Sequence[str] | None = None,
        end: Sequence[str] | None = None,
        prefix: Sequence[str] | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Iterator[tuple[SortKey, Canonical]]: ...


class InMemoryCanonicalStore:
    """Reference store: sorted encoded keys per partition, values as tagged JSON."""

    def __init__(self, settings: CodecSettings | None = None) -> None:
        self._serializer = TaggedJsonSerializer(settings)
        self._deserializer = TaggedJsonDeserializer()
        self._lock = threading.Lock()
        self._keys: dict[str, list[str]] = {}
        self._values: dict[tuple[str, str], bytes] = {}

    def store(self, partition: str, sort_key: Sequence[str], value: CanonicalLike) -> None:
        key = encode_sort_key(sort_key)
        data = self._serializer.serialize(to_canonical(value))
        with self._lock:
            keys = self._keys.setdefault(partition, [])
            if (partition, key) not in self._values:
                bisect.insort(keys, key)
            self._values[(partition, key)] = data
        _LOGGER.debug("store_put", partition=partition, bytes=len(data))

    def load(self, partition: str, sort_key: Sequence[str]) -> Canonical | None:
        with self._lock:
            data = self._values.get((partition, encode_sort_key(sort_key)))
        return None if data is None else self._deserializer.deserialize(data)

    def delete(self, partition: str, sort_key: Sequence[str]) -> bool:
        key = encode_sort_key(sort_key)
        with self._lock:
            if self._values.pop((partition, key), None) is None:
                return False
            keys = self._keys[partition]
            del keys[bisect.bisect_left(keys, key)]
        _LOGGER.debug("store_deleted", partition=partition)
        return True

    def query(
        self,
        partition: str,
        *,
        start: Sequence[str] | None = None,
        end: Sequence[str] | None = None,
        prefix: Sequence[str] | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Iterator[tuple[SortKey, Canonical]]:
        _validate_limit(limit)
        low, high = _key_range(start, end, prefix)
        with self._lock:
            keys = self._keys.get(partition, [])
            lo = 0 if low is None else bisect.bisect_left(keys, low)
            hi = len(keys) if high is None else bisect.bisect_left(keys, high)
            selected = keys[lo:hi] if lo < hi else []
            if descending:
                selected.reverse()
            if limit is not None:
                selected = selected[:limit]
            rows = [(key, self._values[(partition, key)]) for key in selected]
        for key, data in rows:
            yield decode_sort_key(key), self._deserializer.deserialize(data)


class SqliteCanonicalStore:
    """SQLite-backed store; keys are kept as UTF-8 BLOBs so SQLite orders them bytewise."""

    _SCHEMA: Final[str] = (
        "CREATE TABLE IF NOT EXISTS canonical_values ("
        " partition TEXT NOT NULL,"
        " sort_key BLOB NOT NULL,"
        " payload BLOB NOT NULL,"
        " PRIMARY KEY (partition, sort_key)"
        ") WITHOUT ROWID"
    )

    def __init__(self, path: str | Path = ":memory:", settings: CodecSettings | None = None) -> None:
        self._path = str(path) if str(path) == ":memory:" else str(Path(path).expanduser())
        self._serializer = TaggedJsonSerializer(settings)
        self._deserializer = TaggedJsonDeserializer()
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        with self._lock, self._conn:
            self._conn.execute(self._SCHEMA)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SqliteCanonicalStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def store(self, partition: str, sort_key: Sequence[str], value: CanonicalLike) -> None:
        key = encode_sort_key(sort_key).encode("utf-8")
        data = self._serializer.serialize(to_canonical(value))
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO canonical_values (partition, sort_key, payload) VALUES (?, ?, ?) "
                "ON CONFLICT (partition, sort_key) DO UPDATE SET payload = excluded.payload",
                (partition, key, data),
            )
        _LOGGER.debug("store_put", partition=partition, bytes=len(data))

    def load(self, partition: str, sort_key: Sequence[str]) -> Canonical | None:
        key = encode_sort_key(sort_key).encode("utf-8")
        with self._lock:
            row = self._conn.execute(
                "SELECT payload FROM canonical_values WHERE partition = ? AND sort_key = ?",
                (partition, key),
            ).fetchone()
        return None if row is None else self._deserializer.deserialize(row[0])

    def delete(self, partition: str, sort_key: Sequence[str]) -> bool:
        key = encode_sort_key(sort_key).encode("utf-8")
        with self._lock, self._conn:
            cursor = self._conn.execute(
                "DELETE FROM canonical_values WHERE partition = ? AND sort_key = ?",
                (partition, key),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            _LOGGER.debug("store_deleted", partition=partition)
        return deleted

    def query(
        self,
        partition: str,
        *,
        start: Sequence[str] | None = None,
        end: Sequence[str] | None = None,
        prefix: Sequence[str] | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Iterator[tuple[SortKey, Canonical]]:
        _validate_limit(limit)
        low, high = _key_range(start, end, prefix)
        clauses = ["partition = ?"]
        params: list[object] = [partition]
        if low is not None:
            clauses.append("sort_key >= ?")
            params.append(low.encode("utf-8"))
        if high is not None:
            clauses.append("sort_key < ?")
            params.append(high.encode("utf-8"))
        sql = (
            "SELECT sort_key, payload FROM canonical_values WHERE "
            + " AND ".join(clauses)
            + f" ORDER BY sort_key {'DESC' if descending else 'ASC'}"
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
        for key, data in rows:
            yield decode_sort_key(bytes(key).decode("utf-8")), self._deserializer.deserialize(data)


__all__ = [
    "CanonicalStore",
    "InMemoryCanonicalStore",
    "SortKey",
    "SqliteCanonicalStore",
    "decode_sort_key",
    "encode_sort_key",
]
