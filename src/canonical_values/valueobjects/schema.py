"""Schema declaration: definitions, field descriptors, validators and the registry.

Every value-object class is registered exactly once, when the class statement
completes. Registration builds a frozen :class:`ValueDefinition` from the
already registered definition of the base class plus the class's own
declarations:

- the logical type chain: base chain + own type name (explicit ``type_name``
  keyword, else derived from the class name; ``""`` adds nothing),
- struct fields: :class:`FieldSpec` class attributes created by
  :func:`required` / :func:`optional`,
- sequence and mapping element types: the ``element`` keyword,
- validators: inherited oldest first, extended by the :func:`validation`
  class decorator.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, TypeVar

from canonical_values.canonical.base import (
    Canonical,
    LogicalTypes,
    PhysicalType,
    format_logical_types,
    to_canonical,
    types_is,
)
from canonical_values.config import UnknownFieldPolicy
from canonical_values.errors import IssueKind, ValidationIssue, fail

if TYPE_CHECKING:
    from canonical_values.valueobjects.base import ValueObject

ValueClassRef = Any
"""A value-object class, or a zero-argument callable returning one (forward reference)."""

_TClass = TypeVar("_TClass", bound=type)


class ValueKind(StrEnum):
    PRIMITIVE = "primitive"
    STRUCT = "struct"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def derive_type_name(name: str) -> str:
    """Derive a logical type name from a class or attribute name.

    ``MySubString`` becomes ``my-sub-string`` and ``first_name`` becomes
    ``first-name``. Characters other than ASCII letters, digits and ``_`` are
    rejected.
    """
    parts: list[str] = []
    for char in name:
        if "A" <= char <= "Z":
            if parts:
                parts.append("-")
            parts.append(char.lower())
        elif char == "_":
            parts.append("-")
        elif "a" <= char <= "z" or "0" <= char <= "9":
            parts.append(char)
        else:
            raise ValueError(f"invalid character {char!r} in name: {name}")
    return "".join(parts)


def resolve_value_class(ref: ValueClassRef) -> type[ValueObject]:
    from canonical_values.valueobjects.base import ValueObject

    resolved = ref
    if not isinstance(ref, type) and callable(ref):
        resolved = ref()
    if not (isinstance(resolved, type) and issubclass(resolved, ValueObject)):
        raise TypeError(f"expected a value object class, got {resolved!r}")
    return resolved


@dataclass(frozen=True, slots=True)
class Validator:
    """A custom check plus the description reported when it returns ``False``."""

    check: Callable[[Any], object]
    description: str = ""

    def run(self, subject: object) -> str | None:
        """Return a failure message, or ``None`` when ``subject`` passes."""
        try:
            result = self.check(subject)
        except Exception as exc:  # noqa: BLE001
            reason = f"{type(exc).__name__}: {exc}"
            return f"{self.description} ({reason})" if self.description else reason
        if result is True or result is None or result == "":
            return None
        if isinstance(result, str):
            return result
        return self.description or "validation failed"


class FieldSpec:
    """Declares a struct field; reading it on an instance returns the slot value."""

    __slots__ = ("_name", "_ref", "attribute", "required")

    def __init__(self, ref: ValueClassRef, *, required: bool, name: str | None = None) -> None:
        self._ref = ref
        self._name = name
        self.required = required
        self.attribute: str | None = None

    def __set_name__(self, owner: type, attribute: str) -> None:
        self.attribute = attribute
        if self._name is None:
            self._name = derive_type_name(attribute)

    @property
    def name(self) -> str:
        if self._name is None:
            raise TypeError("field is not attached to a struct class")
        return self._name

    @property
    def value_class(self) -> type[ValueObject]:
        return resolve_value_class(self._ref)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.get_slot(self.name, required=self.required)

    def __set__(self, instance: Any, value: object) -> None:
        raise AttributeError(f"field {self.name!r} of a value object is read-only")

    def __repr__(self) -> str:
        kind = "required" if self.required else "optional"
        return f"FieldSpec({self._name!r}, {kind}, {self._ref!r})"


def required(ref: ValueClassRef, *, name: str | None = None) -> Any:
    """Declare a required struct field of value class ``ref``."""
    return FieldSpec(ref, required=True, name=name)


def optional(ref: ValueClassRef, *, name: str | None = None) -> Any:
    """Declare an optional struct field of value class ``ref``."""
    return FieldSpec(ref, required=False, name=name)


@dataclass(frozen=True, slots=True)
class ValueDefinition:
    """Frozen schema of one value-object class."""

    value_class: type
    kind: ValueKind
    types: LogicalTypes = ()
    validators: tuple[Validator, ...] = ()
    physical_type: PhysicalType | None = None
    fields: Mapping[str, FieldSpec] = field(default_factory=dict)
    unknown_fields: UnknownFieldPolicy | None = None
    element: ValueClassRef | None = None

    @classmethod
    def for_class(cls, value_class: type, kind: ValueKind) -> ValueDefinition:
        """Start from the registered definition of the nearest value-object base."""
        base = REGISTRY.find_base_definition(value_class)
        if base is None:
            return cls(value_class=value_class, kind=kind)
        return replace(base, value_class=value_class, kind=kind, fields=dict(base.fields))

    def with_type(self, type_name: str) -> ValueDefinition:
        if not type_name:
            return self
        return replace(self, types=(*self.types, type_name))

    def with_validator(
        self,
        check: Callable[[Any], object],
        description: str = "",
    ) -> ValueDefinition:
        return replace(self, validators=(*self.validators, Validator(check, description)))

    def with_physical_type(self, physical_type: PhysicalType) -> ValueDefinition:
        return replace(self, physical_type=physical_type)

    def with_field(self, spec: FieldSpec) -> ValueDefinition:
        merged = dict(self.fields)
        merged[spec.name] = spec
        return replace(self, fields=merged)

    def with_unknown_fields(self, policy: UnknownFieldPolicy | str) -> ValueDefinition:
        return replace(self, unknown_fields=UnknownFieldPolicy(policy))

    def with_element(self, ref: ValueClassRef) -> ValueDefinition:
        return replace(self, element=ref)

    @property
    def type_name(self) -> str:
        return self.types[-1] if self.types else ""

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(name for name, spec in self.fields.items() if spec.required)

    @property
    def element_class(self) -> type[ValueObject]:
        if self.element is None:
            raise TypeError(f"{self.value_class.__name__} does not declare an element type")
        return resolve_value_class(self.element)

    def is_a(self, other: ValueDefinition) -> bool:
        return types_is(self.types, other.types)

    def check_canonical(self, canonical: Canonical, path: str = "") -> None:
        """Fail with ``LogicalTypeIncompatibleError`` unless ``canonical`` is one of ours."""
        if not canonical.is_a(self.types):
            types = canonical.logical_types
            fail(
                IssueKind.LOGICAL_TYPE_INCOMPATIBLE,
                path,
                f'logical type(s) "{format_logical_types(types)}" are not compatible with '
                f'"{format_logical_types(self.types)}"',
            )

    def run_validators(self, subject: object, path: str = "") -> list[ValidationIssue]:
        """Run every validator, oldest first, and collect every failure."""
        issues: list[ValidationIssue] = []
        for validator in self.validators:
            message = validator.run(subject)
            if message is not None:
                issues.append(
                    ValidationIssue(
                        IssueKind.VALIDATOR_FAILURE,
                        path,
                        f'invalid value for "{self.type_name or self.value_class.__name__}": '
                        f"{message}",
                    )
                )
        return issues


class SchemaRegistry:
    """Table from value-object class to its definition."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._definitions: dict[type, ValueDefinition] = {}
        self._by_types: dict[LogicalTypes, type] = {}

    def register(self, definition: ValueDefinition) -> ValueDefinition:
        with self._lock:
            self._definitions[definition.value_class] = definition
            if definition.types:
                self._by_types[definition.types] = definition.value_class
        return definition

    def get(self, value_class: type) -> ValueDefinition:
        try:
            return self._definitions[value_class]
        except KeyError:
            raise TypeError(f"{value_class.__name__} is not a registered value object") from None

    def find_base_definition(self, value_class: type) -> ValueDefinition | None:
        for base in value_class.__mro__[1:]:
            definition = self._definitions.get(base)
            if definition is not None:
                return definition
        return None

    def find_class(self, types: Iterable[str]) -> type | None:
        """Latest registered class whose type chain equals ``types`` exactly."""
        return self._by_types.get(tuple(types))

    def from_canonical(self, value: object) -> ValueObject:
        """Materialize the registered value class matching the canonical's chain."""
        canonical = to_canonical(value)
        value_class = self.find_class(canonical.logical_types)
        if value_class is None:
            fail(
                IssueKind.LOGICAL_TYPE_INCOMPATIBLE,
                "",
                f'no value object registered for "{format_logical_types(canonical.logical_types)}"',
            )
        return value_class.from_canonical(canonical)  # type: ignore[attr-defined,no-any-return]

    def __contains__(self, value_class: object) -> bool:
        return value_class in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


REGISTRY: Final[SchemaRegistry] = SchemaRegistry()


def register_class(
    value_class: type,
    kind: ValueKind,
    *,
    type_name: str | None,
    configure: Callable[[ValueDefinition], ValueDefinition] | None = None,
) -> ValueDefinition:
    """Build and register the definition of ``value_class``."""
    own_name = derive_type_name(value_class.__name__) if type_name is None else type_name
    definition = ValueDefinition.for_class(value_class, kind).with_type(own_name)
    if configure is not None:
        definition = configure(definition)
    return REGISTRY.register(definition)


def validation(
    check: Callable[[Any], object],
    description: str = "",
) -> Callable[[_TClass], _TClass]:
    """Class decorator adding a validator to a registered value-object class.

    Primitive validators receive the native value, struct validators the slot
    mapping, sequence validators the element tuple, mapping validators the
    entry mapping.
    """

    def decorate(value_class: _TClass) -> _TClass:
        definition = REGISTRY.get(value_class)
        REGISTRY.register(definition.with_validator(check, description))
        return value_class

    return decorate


def definition_of(value_class: type) -> ValueDefinition:
    return REGISTRY.get(value_class)


__all__ = [
    "REGISTRY",
    "FieldSpec",
    "SchemaRegistry",
    "ValueClassRef",
    "ValueDefinition",
    "ValueKind",
    "Validator",
    "definition_of",
    "derive_type_name",
    "optional",
    "register_class",
    "required",
    "resolve_value_class",
    "validation",
]
