"""Sequence value objects: ordered, validated element lists.

Derivation helpers never mutate their input; the instance methods returning a
sequence build a new instance of the same class, which is validated again.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, ClassVar, TypeVar, overload

from canonical_values.canonical.base import Canonical, is_canonical_like, to_canonical
from canonical_values.canonical.sequences import ArrayCanonical
from canonical_values.errors import (
    CanonicalError,
    IssueKind,
    ValidationIssue,
    fail,
    issues_from_error,
    raise_issues,
)
from canonical_values.valueobjects.base import ValueObject, check_not_extracted, wrap_element
from canonical_values.valueobjects.primitives import PrimitiveValue
from canonical_values.valueobjects.schema import (
    ValueClassRef,
    ValueDefinition,
    ValueKind,
    register_class,
)

_TSequence = TypeVar("_TSequence", bound="SequenceValue")
_TResult = TypeVar("_TResult")


class SequenceValue(ValueObject):
    """Ordered list of elements of the ``element`` class.

    Example::

        class Numbers(SequenceValue, element=IntValue): ...

        Numbers.sort_from([1, 5, 2, 4, 3]).slice(-2)  # Numbers([4, 5])
        Numbers.sort_from([1, 5, 2], cmp=lambda left, right: right - left)  # Numbers([5, 2, 1])
    """

    __slots__ = ("_elements", "_extracted")

    kind: ClassVar[ValueKind] = ValueKind.SEQUENCE

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

        register_class(cls, ValueKind.SEQUENCE, type_name=type_name, configure=configure)

    def __init__(self, items: Iterable[object] = ()) -> None:
        super().__init__()
        if isinstance(items, (str, bytes, bytearray, Mapping)) or not isinstance(items, Iterable):
            fail(
                IssueKind.VALIDATOR_FAILURE,
                "",
                f"{type(self).__name__} expects an iterable of elements, not {type(items).__name__}",
            )
        self._elements: tuple[Any, ...] = type(self)._assemble(items)
        self._extracted = False

    @classmethod
    def _assemble(cls, items: Iterable[object]) -> tuple[Any, ...]:
        definition = cls.definition()
        elements: list[Any] = []
        issues: list[ValidationIssue] = []
        for index, raw in enumerate(items):
            try:
                elements.append(wrap_element(definition, raw))
            except CanonicalError as exc:
                issues.extend(issues_from_error(exc, f"[{index}]"))
        result = tuple(elements)
        if not issues:
            issues.extend(definition.run_validators(result))
        if issues:
            raise_issues(issues)
        return result

    @classmethod
    def _from_native(cls: type[_TSequence], value: object) -> _TSequence:
        return cls(value)  # type: ignore[arg-type]

    @classmethod
    def _from_checked_canonical(
        cls: type[_TSequence],
        canonical: Canonical,
    ) -> tuple[_TSequence, bool]:
        return cls(canonical.iter_sequence()), True

    def _derive_canonical_representation(self) -> Canonical:
        check_not_extracted(self, self._extracted)
        return ArrayCanonical(self._elements, self.logical_types)

    @property
    def _items(self) -> tuple[Any, ...]:
        check_not_extracted(self, self._extracted)
        return self._elements

    def get(self, index: int) -> Any:
        """Element at ``index`` (negative counts from the end), or ``None``."""
        items = self._items
        if -len(items) <= index < len(items):
            return items[index]
        return None

    @overload
    def __getitem__(self, index: int) -> Any: ...

    @overload
    def __getitem__(self: _TSequence, index: slice) -> _TSequence: ...

    def __getitem__(self, index: int | slice) -> Any:
        if isinstance(index, slice):
            return type(self)(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __contains__(self, value: object) -> bool:
        return self.includes(value)

    def extract_elements(self) -> list[Any]:
        """Hand out the elements; afterwards this instance refuses element access."""
        elements = list(self._items)
        self._extracted = True
        self._elements = ()
        return elements

    def map(self, func: Callable[[Any], _TResult]) -> list[_TResult]:
        return [func(element) for element in self._items]

    def filter(self: _TSequence, predicate: Callable[[Any], object]) -> _TSequence:
        return type(self)(element for element in self._items if predicate(element))

    def find(self, predicate: Callable[[Any], object]) -> Any:
        for element in self._items:
            if predicate(element):
                return element
        return None

    def find_index(self, predicate: Callable[[Any], object]) -> int:
        for index, element in enumerate(self._items):
            if predicate(element):
                return index
        return -1

    def index_of(self, value: object, start: int = 0) -> int:
        """Position of the first element canonically equal to ``value``, or ``-1``.

        Native values are wrapped with the element class first; a native
        value the element class rejects is never found.
        """
        items = self._items
        target = self._comparable(value)
        if target is None:
            return -1
        for index in range(*slice(start, None).indices(len(items))):
            if to_canonical(items[index]).equals(target):
                return index
        return -1

    def includes(self, value: object) -> bool:
        return self.index_of(value) != -1

    def reverse(self: _TSequence) -> _TSequence:
        return type(self)(reversed(self._items))

    def slice(self: _TSequence, start: int | None = None, end: int | None = None) -> _TSequence:
        return type(self)(self._items[start:end])

    def reduce(self, func: Callable[[Any, Any], Any], *initial: Any) -> Any:
        """Fold left; without a seed an empty sequence raises ``TypeError``."""
        if len(initial) > 1:
            raise TypeError("reduce() takes at most one initial value")
        return functools.reduce(func, self._items, *initial)

    def _comparable(self, value: object) -> Canonical | None:
        if is_canonical_like(value):
            return to_canonical(value)
        try:
            wrapped = wrap_element(type(self).definition(), value)
        except CanonicalError:
            return None
        return to_canonical(wrapped)

    @classmethod
    def fill_from(cls: type[_TSequence], template: object, count: int) -> _TSequence:
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        return cls([template] * count)

    @classmethod
    def concatenate_from(cls: type[_TSequence], *parts: Iterable[object]) -> _TSequence:
        return cls(element for part in parts for element in part)

    @classmethod
    def map_from(
        cls: type[_TSequence],
        source: Iterable[Any],
        func: Callable[[Any], object],
    ) -> _TSequence:
        return cls(func(element) for element in source)

    @classmethod
    def sort_from(
        cls: type[_TSequence],
        source: Iterable[Any],
        key: Callable[[Any], Any] | None = None,
        *,
        cmp: Callable[[Any, Any], int] | None = None,
        reverse: bool = False,
    ) -> _TSequence:
        """Sorted copy of ``source``; primitives sort by native value by default.

        ``key`` takes one element; a two-argument comparator goes in ``cmp``.
        """
        if cmp is not None:
            if key is not None:
                raise TypeError("pass either key or cmp, not both")
            key = functools.cmp_to_key(cmp)
        elif key is not None and _is_comparator(key):
            raise TypeError("key takes one element; pass a two-argument comparator as cmp=")
        return cls(sorted(source, key=key or _native_sort_key, reverse=reverse))

    @classmethod
    def filter_from(
        cls: type[_TSequence],
        source: Iterable[Any],
        predicate: Callable[[Any], object],
    ) -> _TSequence:
        return cls(element for element in source if predicate(element))

    @classmethod
    def slice_from(
        cls: type[_TSequence],
        source: Iterable[Any],
        start: int | None = None,
        end: int | None = None,
    ) -> _TSequence:
        return cls(tuple(source)[start:end])

    @classmethod
    def reverse_from(cls: type[_TSequence], source: Iterable[Any]) -> _TSequence:
        return cls(reversed(tuple(source)))

    def __repr__(self) -> str:
        if self._extracted:
            return f"{type(self).__name__}(<extracted>)"
        return f"{type(self).__name__}({list(self._elements)!r})"


def _native_sort_key(element: Any) -> Any:
    if isinstance(element, PrimitiveValue):
        return element.value
    return element


def _is_comparator(func: Callable[..., Any]) -> bool:
    try:
        parameters = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = [
        parameter
        for parameter in parameters
        if parameter.kind
        in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and parameter.default is inspect.Parameter.empty
    ]
    return len(positional) == 2


__all__ = ["SequenceValue"]
