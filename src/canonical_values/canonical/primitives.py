"""Leaf canonicals, one class per scalar physical type."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from canonical_values.canonical.base import Canonical, PhysicalType
from canonical_values.canonical.moments import from_epoch_ms, normalize_moment


class NoneCanonical(Canonical):
    __slots__ = ()

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.NONE

    @property
    def none_value(self) -> None:
        return None


class BoolCanonical(Canonical):
    __slots__ = ("_value",)

    def __init__(self, value: bool, logical_types: Iterable[str] = ()) -> None:
        if not isinstance(value, bool):
            raise TypeError(f"BoolCanonical expects bool, got {type(value).__name__}")
        super().__init__(logical_types)
        self._value = value

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.BOOL

    @property
    def bool_value(self) -> bool:
        return self._value


class IntCanonical(Canonical):
    __slots__ = ("_value",)

    def __init__(self, value: int, logical_types: Iterable[str] = ()) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"IntCanonical expects int, got {type(value).__name__}")
        super().__init__(logical_types)
        self._value = value

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.INT

    @property
    def int_value(self) -> int:
        return self._value


class FloatCanonical(Canonical):
    """Real number payload. NaN and infinities are representable here."""

    __slots__ = ("_value",)

    def __init__(self, value: float, logical_types: Iterable[str] = ()) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"FloatCanonical expects float, got {type(value).__name__}")
        super().__init__(logical_types)
        self._value = float(value)

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.FLOAT

    @property
    def float_value(self) -> float:
        return self._value


class StringCanonical(Canonical):
    __slots__ = ("_value",)

    def __init__(self, value: str, logical_types: Iterable[str] = ()) -> None:
        if not isinstance(value, str):
            raise TypeError(f"StringCanonical expects str, got {type(value).__name__}")
        super().__init__(logical_types)
        self._value = value

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.STRING

    @property
    def string_value(self) -> str:
        return self._value


class MomentCanonical(Canonical):
    """A point in time, stored as a timezone-aware UTC ``datetime``.

    Epoch milliseconds are accepted too; fractions keep microsecond precision.
    """

    __slots__ = ("_value",)

    def __init__(self, value: datetime | int | float, logical_types: Iterable[str] = ()) -> None:
        if isinstance(value, datetime):
            moment = normalize_moment(value)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            moment = from_epoch_ms(value)
        else:
            raise TypeError(f"MomentCanonical expects datetime, got {type(value).__name__}")
        super().__init__(logical_types)
        self._value = moment

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.MOMENT

    @property
    def moment_value(self) -> datetime:
        return self._value


class BinaryCanonical(Canonical):
    __slots__ = ("_value",)

    def __init__(
        self,
        value: bytes | bytearray | memoryview,
        logical_types: Iterable[str] = (),
    ) -> None:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"BinaryCanonical expects bytes, got {type(value).__name__}")
        super().__init__(logical_types)
        self._value = bytes(value)

    @property
    def physical_type(self) -> PhysicalType:
        return PhysicalType.BINARY

    @property
    def binary_value(self) -> bytes:
        return self._value


__all__ = [
    "BinaryCanonical",
    "BoolCanonical",
    "FloatCanonical",
    "IntCanonical",
    "MomentCanonical",
    "NoneCanonical",
    "StringCanonical",
]
