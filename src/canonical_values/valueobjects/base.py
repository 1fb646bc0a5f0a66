"""Value-object base class and the shared construction pipeline.

``from_value`` accepts three kinds of input:

1. a value object: returned unchanged when it is an instance of the target
   class, otherwise re-derived from its canonical (which checks the chain),
2. a canonical or :class:`CanonicalSource`: handled by ``from_canonical``,
   which checks the logical type chain before re-deriving the children,
3. a native Python value: wrapped and validated by the concrete kind.

Instances are immutable. The canonical representation is computed on first
use and cached; a canonical passed to ``from_canonical`` is reused when its
type chain extends the target's (never for flexible canonicals, and never
for streaming ones, whose single cursor is spent by construction).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, TypeVar

from canonical_values.canonical.base import (
    Canonical,
    LogicalTypes,
    SourceKind,
    is_canonical_like,
    to_canonical,
    types_is,
)
from canonical_values.canonical.natives import canonical_from_native
from canonical_values.errors import IssueKind, UseAfterExtractionError, fail
from canonical_values.valueobjects.schema import (
    FieldSpec,
    ValueDefinition,
    ValueKind,
    definition_of,
)

_TValue = TypeVar("_TValue", bound="ValueObject")


class ValueObject(ABC):
    """Marker base class implemented by every value object."""

    __slots__ = ("_canonical",)

    kind: ClassVar[ValueKind]

    def __init__(self) -> None:
        self._canonical: Canonical | None = None

    @classmethod
    def definition(cls) -> ValueDefinition:
        return definition_of(cls)

    @classmethod
    def required(cls, *, name: str | None = None) -> Any:
        """Declare a required struct field of this class."""
        return FieldSpec(cls, required=True, name=name)

    @classmethod
    def optional(cls, *, name: str | None = None) -> Any:
        """Declare an optional struct field of this class."""
        return FieldSpec(cls, required=False, name=name)

    @classmethod
    def from_value(cls: type[_TValue], value: object) -> _TValue:
        if isinstance(value, ValueObject):
            if isinstance(value, cls):
                return value
            return cls.from_canonical(value)
        if is_canonical_like(value):
            return cls.from_canonical(value)
        return cls._from_native(value)

    @classmethod
    def from_canonical(
        cls: type[_TValue],
        value: object,
        *,
        cache_canonical: bool | None = None,
    ) -> _TValue:
        """Build from a canonical whose type chain extends this class's chain.

        ``cache_canonical`` forces (``True``) or suppresses (``False``) reuse
        of ``value`` as the instance's canonical representation. A streaming
        canonical is never reused: building the instance consumes it.
        """
        canonical = to_canonical(value)
        definition = cls.definition()
        definition.check_canonical(canonical)
        instance, complete = cls._from_checked_canonical(canonical)
        if cache_canonical is None:
            cache_canonical = (
                complete
                and not canonical.is_flexible
                and types_is(canonical.logical_types, definition.types)
            )
        if cache_canonical and canonical.source_kind is not SourceKind.STREAMING:
            instance._canonical = canonical
        return instance

    @classmethod
    @abstractmethod
    def _from_native(cls: type[_TValue], value: object) -> _TValue: ...

    @classmethod
    @abstractmethod
    def _from_checked_canonical(cls: type[_TValue], canonical: Canonical) -> tuple[_TValue, bool]:
        """Build from a type-checked canonical; the flag says nothing was dropped."""

    @abstractmethod
    def _derive_canonical_representation(self) -> Canonical: ...

    @property
    def logical_types(self) -> LogicalTypes:
        return type(self).definition().types

    def peek_canonical_representation(self) -> Canonical:
        canonical = self._canonical
        if canonical is None:
            canonical = self._derive_canonical_representation()
            self._canonical = canonical
        return canonical

    def equals(self, other: object) -> bool:
        if other is self:
            return True
        if not is_canonical_like(other):
            return False
        return self.peek_canonical_representation().equals(other)

    def __eq__(self, other: object) -> bool:
        if not is_canonical_like(other):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def _new_instance(cls: type[_TValue]) -> _TValue:
        instance = cls.__new__(cls)
        ValueObject.__init__(instance)
        return instance


def check_not_extracted(owner: ValueObject, extracted: bool) -> None:
    if extracted:
        raise UseAfterExtractionError(
            f"{type(owner).__name__}: contents were extracted and can no longer be accessed"
        )


def wrap_element(definition: ValueDefinition, raw: object) -> object:
    """Wrap one sequence element or mapping value of a container definition.

    Without a declared element class the child is kept as a canonical.
    """
    if definition.element is None:
        if is_canonical_like(raw):
            return raw
        try:
            return canonical_from_native(raw)
        except TypeError as exc:
            fail(IssueKind.VALIDATOR_FAILURE, "", str(exc))
    return definition.element_class.from_value(raw)


__all__ = ["ValueObject", "check_not_extracted", "wrap_element"]
