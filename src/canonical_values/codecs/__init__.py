"""JSON codecs for canonical values."""

from canonical_values.codecs.deser import CanonicalJsonDeSer
from canonical_values.codecs.flex import FlexCanonical
from canonical_values.codecs.plain_json import PlainJsonDeserializer, PlainJsonSerializer
from canonical_values.codecs.tagged_json import TaggedJsonDeserializer, TaggedJsonSerializer

__all__ = [
    "CanonicalJsonDeSer",
    "FlexCanonical",
    "PlainJsonDeserializer",
    "PlainJsonSerializer",
    "TaggedJsonDeserializer",
    "TaggedJsonSerializer",
]
