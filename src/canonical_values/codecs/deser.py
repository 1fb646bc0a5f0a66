"""Framed serializer: a four byte ``CJ00`` header followed by tagged JSON."""

from __future__ import annotations

from typing import Final

from canonical_values.canonical.base import Canonical, is_canonical_like
from canonical_values.codecs.tagged_json import TaggedJsonDeserializer, TaggedJsonSerializer
from canonical_values.config import CodecSettings
from canonical_values.errors import MalformedEncodingError

MAGIC: Final[bytes] = b"CJ"
MAJOR_VERSION: Final[int] = 0
MINOR_VERSION: Final[int] = 0
HEADER: Final[bytes] = MAGIC + f"{MAJOR_VERSION}{MINOR_VERSION}".encode("ascii")


class CanonicalJsonDeSer:
    """Serialize canonical-like values to framed tagged JSON and back."""

    def __init__(self, settings: CodecSettings | None = None) -> None:
        self._serializer = TaggedJsonSerializer(settings)
        self._deserializer = TaggedJsonDeserializer()

    def detect(self, data: bytes) -> bool:
        return len(data) >= len(HEADER) + 1 and data[: len(MAGIC)] == MAGIC

    def serialize(self, value: object) -> bytes:
        if not is_canonical_like(value):
            raise TypeError(f"cannot serialize {type(value).__name__}: not canonical-like")
        return HEADER + self._serializer.serialize(value)

    def try_serialize(self, value: object) -> bytes | None:
        if not is_canonical_like(value):
            return None
        return self.serialize(value)

    def deserialize(self, data: bytes) -> Canonical:
        if not self.detect(data):
            raise MalformedEncodingError("framed payload does not start with the CJ header")
        major = data[2:3]
        if not major.isdigit():
            raise MalformedEncodingError(f"framed payload has an invalid major version {major!r}")
        if int(major) > MAJOR_VERSION:
            raise MalformedEncodingError(
                f"framed payload major version {int(major)} is newer than {MAJOR_VERSION}"
            )
        return self._deserializer.deserialize(data[len(HEADER) :])


__all__ = ["HEADER", "MAJOR_VERSION", "MINOR_VERSION", "CanonicalJsonDeSer"]
