"""Mapping value objects: open string-keyed maps with one value class."""

from __future__ import annotations

from collections.abc import ItemsView, Iterator, KeysView, Mapping, ValuesView
from types import MappingProxyType
from typing import Any, ClassVar, TypeVar

from canonical_values.canonical.base import Canonical
from canonical_values.canonical.mappings import MapCanonical
from canonical_values.errors import (
    CanonicalError,
    IssueKind,
    ValidationIssue,
    fail,
    issues_from_error,
    raise_issues,
)
from canonical_values.valueobjects.base import ValueObject, check_not_extracted, wrap_element
from canonical_values.valueobjects.schema import (
    ValueClassRef,
    ValueDefinition,
    ValueKind,
    register_class,
)

_TMapping = TypeVar("_TMapping", bound="MappingValue")


class MappingValue(ValueObject):
    """String keys to values of the ``element`` class; ``None`` values are skipped."""

    __slots__ = ("_entries", "_extracted")

    kind: ClassVar[ValueKind] = ValueKind.MAPPING

    def __init_subclass__(
        cls,
        *,
        type_name: str | None = None,
        element: ValueClassRef | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)

        def configure(definition: ValueDefinition) -> ValueDefinition:
            return definition if element is None else definition.with_element(element)

        register_class(cls, ValueKind.MAPPING, type_name=type_name, configure=configure)

    def __init__(self, entries: Mapping[str, object] | None = None, /, **kwargs: object) -> None:
        super().__init__()
        if entries is not None and not isinstance(entries, Mapping):
            fail(
                IssueKind.VALIDATOR_FAILURE,
                "",
                f"{type(self).__name__} expects a mapping, not {type(entries).__name__}",
            )
        merged = {**dict(entries or {}), **kwargs}
        self._entries: dict[str, Any] = type(self)._assemble(merged.items())
        self._extracted = False

    @classmethod
    def _assemble(cls, pairs: Any) -> dict[str, Any]:
        definition = cls.definition()
        entries: dict[str, Any] = {}
        issues: list[ValidationIssue] = []
        for key, raw in pairs:
            if not isinstance(key, str):
                issues.append(
                    ValidationIssue(
                        IssueKind.VALIDATOR_FAILURE,
                        "",
                        f"keys must be strings, not {type(key).__name__}",
                    )
                )
                continue
            if raw is None:
                continue
            try:
                entries[key] = wrap_element(definition, raw)
            except CanonicalError as exc:
                issues.extend(issues_from_error(exc, key))
        if not issues:
            issues.extend(definition.run_validators(MappingProxyType(entries)))
        if issues:
            raise_issues(issues)
        return entries

    @classmethod
    def _from_native(cls: type[_TMapping], value: object) -> _TMapping:
        return cls(value)  # type: ignore[arg-type]

    @classmethod
    def _from_checked_canonical(
        cls: type[_TMapping],
        canonical: Canonical,
    ) -> tuple[_TMapping, bool]:
        instance = cls._new_instance()
        instance._entries = cls._assemble(canonical.iter_mapping())
        instance._extracted = False
        return instance, True

    def _derive_canonical_representation(self) -> Canonical:
        return MapCanonical(MappingProxyType(dict(self._view)), self.logical_types)

    @property
    def _view(self) -> dict[str, Any]:
        check_not_extracted(self, self._extracted)
        return self._entries

    def get(self, key: str, default: Any = None) -> Any:
        return self._view.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._view[key]

    def __contains__(self, key: object) -> bool:
        return key in self._view

    def __len__(self) -> int:
        return len(self._view)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._view))

    def keys(self) -> KeysView[str]:
        return MappingProxyType(self._view).keys()

    def values(self) -> ValuesView[Any]:
        return MappingProxyType(self._view).values()

    def items(self) -> ItemsView[str, Any]:
        return MappingProxyType(self._view).items()

    def extract_slots(self) -> dict[str, Any]:
        entries = self._view
        self._extracted = True
        self._entries = {}
        return entries

    def __repr__(self) -> str:
        if self._extracted:
            return f"{type(self).__name__}(<extracted>)"
        return f"{type(self).__name__}({self._entries!r})"


__all__ = ["MappingValue"]
