"""Primitive value objects: one validated native value per instance."""

from __future__ import annotations

import math
from abc import abstractmethod
from datetime import datetime, timedelta
from typing import Any, ClassVar, Generic, TypeVar

from canonical_values.canonical.base import (
    Canonical,
    LogicalTypes,
    PhysicalType,
    is_canonical_like,
    to_canonical,
)
from canonical_values.canonical.moments import epoch_ms, from_epoch_ms, normalize_moment
from canonical_values.canonical.primitives import (
    BinaryCanonical,
    BoolCanonical,
    FloatCanonical,
    IntCanonical,
    MomentCanonical,
    NoneCanonical,
    StringCanonical,
)
from canonical_values.errors import IssueKind, fail, raise_issues
from canonical_values.valueobjects.base import ValueObject
from canonical_values.valueobjects.schema import ValueKind, register_class

_TNative = TypeVar("_TNative")
_TPrimitive = TypeVar("_TPrimitive", bound="PrimitiveValue[Any]")
_TMoment = TypeVar("_TMoment", bound="MomentValue")


class PrimitiveValue(ValueObject, Generic[_TNative]):
    """A value object around one native value.

    Subclasses declare the physical storage with ``physical_type``, check the
    native type in ``_check_native`` and may normalize it in
    ``_normalize_native``. Validators receive the normalized native value.
    """

    __slots__ = ("_value",)

    kind: ClassVar[ValueKind] = ValueKind.PRIMITIVE
    physical_type: ClassVar[PhysicalType | None] = None

    def __init_subclass__(cls, *, type_name: str | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        physical_type = cls.physical_type

        def configure(definition: Any) -> Any:
            if physical_type is None:
                return definition
            return definition.with_physical_type(physical_type)

        register_class(cls, ValueKind.PRIMITIVE, type_name=type_name, configure=configure)

    def __init__(self, value: _TNative) -> None:
        super().__init__()
        definition = type(self).definition()
        problem = type(self)._check_native(value)
        if problem is not None:
            label = definition.type_name or type(self).__name__
            fail(IssueKind.VALIDATOR_FAILURE, "", f'invalid value for "{label}": {problem}')
        normalized = type(self)._normalize_native(value)
        issues = definition.run_validators(normalized)
        if issues:
            raise_issues(issues)
        self._value: _TNative = normalized

    @property
    def value(self) -> _TNative:
        return self._value

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        return None

    @classmethod
    def _normalize_native(cls, value: Any) -> Any:
        return value

    @classmethod
    @abstractmethod
    def _read_canonical(cls, canonical: Canonical) -> Any: ...

    @classmethod
    @abstractmethod
    def _make_canonical(cls, value: Any, types: LogicalTypes) -> Canonical: ...

    @classmethod
    def _from_native(cls: type[_TPrimitive], value: object) -> _TPrimitive:
        return cls(value)

    @classmethod
    def _from_checked_canonical(
        cls: type[_TPrimitive],
        canonical: Canonical,
    ) -> tuple[_TPrimitive, bool]:
        return cls(cls._read_canonical(canonical)), True

    def _derive_canonical_representation(self) -> Canonical:
        return type(self)._make_canonical(self._value, self.logical_types)

    def __hash__(self) -> int:  # type: ignore[override]
        return hash((type(self).definition().types, self.physical_type, self._value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


def _type_label(value: object) -> str:
    return type(value).__name__


class NoneValue(PrimitiveValue[None], type_name=""):
    physical_type = PhysicalType.NONE

    def __init__(self, value: None = None) -> None:
        super().__init__(value)

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        return None if value is None else f"must be None, not {_type_label(value)}"

    @classmethod
    def _read_canonical(cls, canonical: Canonical) -> None:
        return canonical.none_value

    @classmethod
    def _make_canonical(cls, value: None, types: LogicalTypes) -> Canonical:
        return NoneCanonical(types)


class StringValue(PrimitiveValue[str], type_name=""):
    physical_type = PhysicalType.STRING

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        return None if isinstance(value, str) else f"must be a string, not {_type_label(value)}"

    @classmethod
    def _read_canonical(cls, canonical: Canonical) -> str:
        return canonical.string_value

    @classmethod
    def _make_canonical(cls, value: str, types: LogicalTypes) -> Canonical:
        return StringCanonical(value, types)

    def __str__(self) -> str:
        return self._value


class IntValue(PrimitiveValue[int], type_name=""):
    physical_type = PhysicalType.INT

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        if isinstance(value, bool) or not isinstance(value, int):
            return f"must be an integer, not {_type_label(value)}"
        return None

    @classmethod
    def _read_canonical(cls, canonical: Canonical) -> int:
        return canonical.int_value

    @classmethod
    def _make_canonical(cls, value: int, types: LogicalTypes) -> Canonical:
        return IntCanonical(value, types)

    def __int__(self) -> int:
        return self._value


class FloatValue(PrimitiveValue[float], type_name=""):
    """Finite real number; integers are accepted and stored as floats."""

    physical_type = PhysicalType.FLOAT

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"must be a number, not {_type_label(value)}"
        try:
            number = float(value)
        except OverflowError:
            return "must be finite"
        if math.isnan(number):
            return "must not be NaN"
        if not math.isfinite(number):
            return "must be finite"
        return None

    @classmethod
    def _normalize_native(cls, value: Any) -> float:
        return float(value)

    @classmethod
    def _read_canonical(cls, canonical: Canonical) -> float:
        return canonical.float_value

    @classmethod
    def _make_canonical(cls, value: float, types: LogicalTypes) -> Canonical:
        return FloatCanonical(value, types)

    def __float__(self) -> float:
        return self._value


class DurationValue(FloatValue, type_name=""):
    """A span of time in milliseconds."""

    @classmethod
    def from_ms(cls: type[_TPrimitive], ms: float) -> _TPrimitive:
        return cls.from_value(ms)

    @classmethod
    def from_seconds(cls: type[_TPrimitive], seconds: float) -> _TPrimitive:
        return cls.from_value(seconds * 1000.0)

    @classmethod
    def from_timedelta(cls: type[_TPrimitive], delta: timedelta) -> _TPrimitive:
        return cls.from_value(delta / timedelta(milliseconds=1))

    @property
    def ms(self) -> float:
        return self._value

    def as_timedelta(self) -> timedelta:
        return timedelta(milliseconds=self._value)


class BoolValue(PrimitiveValue[bool], type_name=""):
    physical_type = PhysicalType.BOOL

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        return None if isinstance(value, bool) else f"must be a boolean, not {_type_label(value)}"

    @classmethod
    def _read_canonical(cls, canonical: Canonical) -> bool:
        return canonical.bool_value

    @classmethod
    def _make_canonical(cls, value: bool, types: LogicalTypes) -> Canonical:
        return BoolCanonical(value, types)

    def __bool__(self) -> bool:
        return self._value


class MomentValue(PrimitiveValue[datetime], type_name=""):
    """A timezone-aware point in time, normalized to UTC."""

    physical_type = PhysicalType.MOMENT

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        if not isinstance(value, datetime):
            return f"must be a datetime, not {_type_label(value)}"
        if value.tzinfo is None or value.utcoffset() is None:
            return "must be timezone-aware"
        return None

    @classmethod
    def _normalize_native(cls, value: Any) -> datetime:
        return normalize_moment(value)

    @classmethod
    def _read_canonical(cls, canonical: Canonical) -> datetime:
        return canonical.moment_value

    @classmethod
    def _make_canonical(cls, value: datetime, types: LogicalTypes) -> Canonical:
        return MomentCanonical(value, types)

    @classmethod
    def from_ms(cls: type[_TMoment], ms: float) -> _TMoment:
        return cls.from_value(from_epoch_ms(ms))

    @property
    def ms(self) -> int | float:
        """Milliseconds since the epoch; an ``int`` unless sub-millisecond."""
        return epoch_ms(self._value)

    def add_duration(self: _TMoment, duration: DurationValue | float) -> _TMoment:
        return type(self).from_value(self._value + _as_timedelta(duration))

    def subtract_duration(self: _TMoment, duration: DurationValue | float) -> _TMoment:
        return type(self).from_value(self._value - _as_timedelta(duration))

    def duration_since(self, earlier: MomentValue) -> DurationValue:
        return DurationValue.from_timedelta(self._value - earlier.value)


def _as_timedelta(duration: DurationValue | float) -> timedelta:
    if isinstance(duration, DurationValue):
        return duration.as_timedelta()
    return DurationValue.from_ms(duration).as_timedelta()


class BinaryValue(PrimitiveValue[bytes], type_name=""):
    physical_type = PhysicalType.BINARY

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return None
        return f"must be bytes, not {_type_label(value)}"

    @classmethod
    def _normalize_native(cls, value: Any) -> bytes:
        return bytes(value)

    @classmethod
    def _read_canonical(cls, canonical: Canonical) -> bytes:
        return canonical.binary_value

    @classmethod
    def _make_canonical(cls, value: bytes, types: LogicalTypes) -> Canonical:
        return BinaryCanonical(value, types)

    def __bytes__(self) -> bytes:
        return self._value


class CanonicalValue(PrimitiveValue[Canonical], type_name=""):
    """Wraps any canonical whose type chain fits; validators see the canonical.

    The canonical is kept as given, so its physical type is unconstrained
    unless a validator says otherwise.
    """

    @classmethod
    def _from_native(cls, value: object) -> CanonicalValue:
        fail(
            IssueKind.VALIDATOR_FAILURE,
            "",
            f"{cls.__name__} requires a canonical, not {_type_label(value)}",
        )

    @classmethod
    def _check_native(cls, value: object) -> str | None:
        return None if is_canonical_like(value) else f"must be a canonical, not {_type_label(value)}"

    @classmethod
    def _normalize_native(cls, value: Any) -> Canonical:
        return to_canonical(value)

    @classmethod
    def _read_canonical(cls, canonical: Canonical) -> Canonical:
        return canonical

    @classmethod
    def _make_canonical(cls, value: Canonical, types: LogicalTypes) -> Canonical:
        return value

    def __hash__(self) -> int:  # type: ignore[override]
        return hash((type(self).definition().types, self._value.physical_type))

__all__ = [
    "BinaryValue",
    "BoolValue",
    "CanonicalValue",
    "DurationValue",
    "FloatValue",
    "IntValue",
    "MomentValue",
    "NoneValue",
    "PrimitiveValue",
    "StringValue",
]
