"""Canonical value model: core type, leaves, containers and cursors."""

from canonical_values.canonical.base import (
    Canonical,
    CanonicalLike,
    CanonicalSource,
    LogicalTypes,
    PhysicalType,
    SourceKind,
    format_logical_types,
    is_canonical_like,
    to_canonical,
    types_equal,
    types_is,
)
from canonical_values.canonical.cursors import MappingEntry, SequenceItem
from canonical_values.canonical.mappings import (
    DictCanonical,
    MapCanonical,
    StreamingMappingCanonical,
)
from canonical_values.canonical.natives import canonical_from_native
from canonical_values.canonical.primitives import (
    BinaryCanonical,
    BoolCanonical,
    FloatCanonical,
    IntCanonical,
    MomentCanonical,
    NoneCanonical,
    StringCanonical,
)
from canonical_values.canonical.sequences import ArrayCanonical, StreamingSequenceCanonical

__all__ = [
    "ArrayCanonical",
    "BinaryCanonical",
    "BoolCanonical",
    "Canonical",
    "CanonicalLike",
    "CanonicalSource",
    "DictCanonical",
    "FloatCanonical",
    "IntCanonical",
    "LogicalTypes",
    "MapCanonical",
    "MappingEntry",
    "MomentCanonical",
    "NoneCanonical",
    "PhysicalType",
    "SequenceItem",
    "SourceKind",
    "StreamingMappingCanonical",
    "StreamingSequenceCanonical",
    "StringCanonical",
    "canonical_from_native",
    "format_logical_types",
    "is_canonical_like",
    "to_canonical",
    "types_equal",
    "types_is",
]
