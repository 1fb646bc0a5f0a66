"""Build canonical trees from plain Python values."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

from canonical_values.canonical.base import Canonical, is_canonical_like
from canonical_values.canonical.mappings import DictCanonical
from canonical_values.canonical.primitives import (
    BinaryCanonical,
    BoolCanonical,
    FloatCanonical,
    IntCanonical,
    MomentCanonical,
    NoneCanonical,
    StringCanonical,
)
from canonical_values.canonical.sequences import ArrayCanonical


def canonical_from_native(value: object, logical_types: Iterable[str] = ()) -> Canonical:
    """Map a Python value onto the matching canonical.

    ``logical_types`` applies to the root only; children are untyped. Canonical
    and canonical-source children are kept as they are.
    """
    if value is None:
        return NoneCanonical(logical_types)
    if isinstance(value, bool):
        return BoolCanonical(value, logical_types)
    if isinstance(value, int):
        return IntCanonical(value, logical_types)
    if isinstance(value, float):
        return FloatCanonical(value, logical_types)
    if isinstance(value, str):
        return StringCanonical(value, logical_types)
    if isinstance(value, datetime):
        return MomentCanonical(value, logical_types)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BinaryCanonical(value, logical_types)
    if isinstance(value, Mapping):
        return DictCanonical(
            {str(key): _child(item) for key, item in value.items()},
            logical_types,
        )
    if isinstance(value, (list, tuple)):
        return ArrayCanonical([_child(item) for item in value], logical_types)
    raise TypeError(f"no canonical form for {type(value).__name__}")


def _child(value: object) -> object:
    if is_canonical_like(value):
        return value
    return canonical_from_native(value)


__all__ = ["canonical_from_native"]
