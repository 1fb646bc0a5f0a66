"""Struct value objects: fixed, named fields declared on the class.

Example::

    class FirstName(StringValue): ...

    class Person(StructValue):
        first_name = FirstName.required()
        last_name = optional(LastName)

    person = Person.from_value({"first_name": "Jantje"})
    person.first_name.value  # "Jantje"

Field names are canonicalized with ``derive_type_name`` (``first_name`` and
``firstName`` both become ``first-name``). Construction collects every field
problem in one pass (child failures, missing required fields, unknown fields
under the ``error`` policy, explicit ``None``), and runs the validators only
when the fields are clean. Under the ``keep`` policy a native unknown value is
stored as its canonical form.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any, ClassVar, TypeVar

from canonical_values.canonical.base import (
    Canonical,
    PhysicalType,
    is_canonical_like,
    to_canonical,
)
from canonical_values.canonical.mappings import MapCanonical
from canonical_values.canonical.natives import canonical_from_native
from canonical_values.config import UnknownFieldPolicy, get_active_config
from canonical_values.errors import (
    CanonicalError,
    IssueKind,
    ValidationIssue,
    fail,
    issues_from_error,
    raise_issues,
)
from canonical_values.valueobjects.base import ValueObject, check_not_extracted
from canonical_values.valueobjects.schema import (
    FieldSpec,
    ValueDefinition,
    ValueKind,
    derive_type_name,
    register_class,
)

_TStruct = TypeVar("_TStruct", bound="StructValue")


class StructValue(ValueObject):
    """Record with declared required and optional fields.

    Class keywords: ``type_name`` (logical type name) and ``unknown_fields``
    (``"keep"``, ``"ignore"`` or ``"error"``; defaults to the configured
    policy).
    """

    __slots__ = ("_extracted", "_slots")

    kind: ClassVar[ValueKind] = ValueKind.STRUCT

    def __init_subclass__(
        cls,
        *,
        type_name: str | None = None,
        unknown_fields: UnknownFieldPolicy | str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        own_fields = [spec for spec in cls.__dict__.values() if isinstance(spec, FieldSpec)]

        def configure(definition: ValueDefinition) -> ValueDefinition:
            for spec in own_fields:
                definition = definition.with_field(spec)
            if unknown_fields is not None:
                definition = definition.with_unknown_fields(unknown_fields)
            return definition

        register_class(cls, ValueKind.STRUCT, type_name=type_name, configure=configure)

    def __init__(self, value: Mapping[str, object] | None = None, /, **fields: object) -> None:
        super().__init__()
        entries = {**dict(value or {}), **fields}
        self._slots: dict[str, object] = type(self)._assemble(entries.items(), normalize=True)
        self._extracted = False

    @classmethod
    def _from_native(cls: type[_TStruct], value: object) -> _TStruct:
        if not isinstance(value, Mapping):
            fail(
                IssueKind.VALIDATOR_FAILURE,
                "",
                f"{cls.__name__} expects a mapping of fields, not {type(value).__name__}",
            )
        return cls(value)

    @classmethod
    def from_slots(cls: type[_TStruct], slots: Mapping[str, object]) -> _TStruct:
        """Build from canonical field names, without name normalization."""
        return cls._with_slots(cls._assemble(slots.items(), normalize=False))

    @classmethod
    def _from_checked_canonical(
        cls: type[_TStruct],
        canonical: Canonical,
    ) -> tuple[_TStruct, bool]:
        entries = list(canonical.iter_mapping())
        slots = cls._assemble(entries, normalize=False)
        return cls._with_slots(slots), len(slots) == len(entries)

    @classmethod
    def _with_slots(cls: type[_TStruct], slots: dict[str, object]) -> _TStruct:
        instance = cls._new_instance()
        instance._slots = slots
        instance._extracted = False
        return instance

    @classmethod
    def _assemble(
        cls,
        entries: Iterable[tuple[str, object]],
        *,
        normalize: bool,
    ) -> dict[str, object]:
        definition = cls.definition()
        settings = get_active_config().valueobjects
        policy = definition.unknown_fields or settings.unknown_fields
        normalize = normalize and settings.normalize_field_names

        slots: dict[str, object] = {}
        issues: list[ValidationIssue] = []
        seen: set[str] = set()
        for key, raw in entries:
            if not isinstance(key, str):
                issues.append(
                    ValidationIssue(
                        IssueKind.UNKNOWN_FIELD,
                        "",
                        f"field names must be strings, not {type(key).__name__}",
                    )
                )
                continue
            name = _canonical_field_name(key, definition) if normalize else key
            seen.add(name)
            spec = definition.fields.get(name)
            if spec is None:
                _handle_unknown(name, raw, policy, slots, issues)
                continue
            if _is_explicit_none(raw, spec):
                issues.append(
                    ValidationIssue(
                        IssueKind.VALIDATOR_FAILURE,
                        name,
                        "explicit None is not allowed; leave the field out instead",
                    )
                )
                continue
            try:
                slots[name] = spec.value_class.from_value(raw)
            except CanonicalError as exc:
                issues.extend(issues_from_error(exc, name))

        for name in definition.required_fields:
            if name not in seen:
                issues.append(
                    ValidationIssue(IssueKind.MISSING_REQUIRED_FIELD, name, "required field is missing")
                )

        if not issues:
            issues.extend(definition.run_validators(MappingProxyType(slots)))
        if issues:
            raise_issues(issues)
        return slots

    def get_slot(self, name: str, *, required: bool = False) -> Any:
        check_not_extracted(self, self._extracted)
        value = self._slots.get(name)
        if value is None and required:
            raise KeyError(f"{type(self).__name__}: required field {name!r} is missing")
        return value

    def get(self, name: str, default: object = None) -> Any:
        """Slot by canonical or Python field name."""
        check_not_extracted(self, self._extracted)
        key = _canonical_field_name(name, type(self).definition())
        return self._slots.get(key, default)

    def __getitem__(self, name: str) -> Any:
        value = self.get(name, _MISSING)
        if value is _MISSING:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name, _MISSING) is not _MISSING

    def __iter__(self) -> Iterator[str]:
        check_not_extracted(self, self._extracted)
        return iter(tuple(self._slots))

    def __len__(self) -> int:
        check_not_extracted(self, self._extracted)
        return len(self._slots)

    def slots(self) -> Mapping[str, object]:
        """Read-only view of the slots, keyed by canonical field name."""
        check_not_extracted(self, self._extracted)
        return MappingProxyType(self._slots)

    def extract_slots(self) -> dict[str, object]:
        """Hand out the slots; afterwards this instance refuses slot access."""
        check_not_extracted(self, self._extracted)
        self._extracted = True
        slots, self._slots = self._slots, {}
        return slots

    def derive(self: _TStruct, value: Mapping[str, object] | None = None, /, **changes: object) -> _TStruct:
        """New instance with some fields replaced; a ``None`` change removes the field."""
        check_not_extracted(self, self._extracted)
        definition = type(self).definition()
        merged = dict(self._slots)
        for key, item in {**dict(value or {}), **changes}.items():
            name = _canonical_field_name(key, definition)
            if item is None:
                merged.pop(name, None)
            else:
                merged[name] = item
        return type(self).from_slots(merged)

    def _derive_canonical_representation(self) -> Canonical:
        check_not_extracted(self, self._extracted)
        return MapCanonical(MappingProxyType(dict(self._slots)), self.logical_types)

    def __repr__(self) -> str:
        if self._extracted:
            return f"{type(self).__name__}(<extracted>)"
        body = ", ".join(f"{name}={value!r}" for name, value in self._slots.items())
        return f"{type(self).__name__}({body})"


_MISSING: Any = object()


def _canonical_field_name(key: str, definition: ValueDefinition) -> str:
    if key in definition.fields:
        return key
    try:
        return derive_type_name(key)
    except ValueError:
        return key


def _handle_unknown(
    name: str,
    raw: object,
    policy: UnknownFieldPolicy,
    slots: dict[str, object],
    issues: list[ValidationIssue],
) -> None:
    if policy is UnknownFieldPolicy.IGNORE:
        return
    if policy is UnknownFieldPolicy.ERROR:
        issues.append(ValidationIssue(IssueKind.UNKNOWN_FIELD, name, "unknown field"))
        return
    if raw is None:
        return
    if is_canonical_like(raw):
        slots[name] = raw
        return
    try:
        slots[name] = canonical_from_native(raw)
    except TypeError as exc:
        issues.append(ValidationIssue(IssueKind.VALIDATOR_FAILURE, name, str(exc)))


def _is_explicit_none(raw: object, spec: FieldSpec) -> bool:
    if spec.value_class.definition().physical_type is PhysicalType.NONE:
        return False
    if raw is None:
        return True
    if isinstance(raw, ValueObject) or not is_canonical_like(raw):
        return False
    return to_canonical(raw).physical_type is PhysicalType.NONE


__all__ = ["StructValue"]
