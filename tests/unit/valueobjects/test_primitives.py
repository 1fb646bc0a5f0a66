"""
canonical-values: unit tests for primitive value objects

File: tests/unit/valueobjects/test_primitives.py

Purpose
- Validate native checks, validators, canonical caching and the time helpers
  of the primitive kinds.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta, timezone

import pytest

from canonical_values.canonical import (
    FloatCanonical,
    IntCanonical,
    NoneCanonical,
    PhysicalType,
    StringCanonical,
)
from canonical_values.codecs import FlexCanonical
from canonical_values.errors import (
    IssueKind,
    LogicalTypeIncompatibleError,
    ValidatorFailureError,
)
from canonical_values.valueobjects import (
    BinaryValue,
    BoolValue,
    CanonicalValue,
    DurationValue,
    FloatValue,
    IntValue,
    MomentValue,
    NoneValue,
    PrimitiveValue,
    StringValue,
    validation,
)


class Label(StringValue):
    pass


class ShortLabel(Label):
    pass


@validation(lambda value: value >= 0, "must not be negative")
class Count(IntValue):
    pass


@validation(lambda value: len(value) <= 3 or f"too long: {len(value)}")
class Code(StringValue):
    pass


class Timeout(DurationValue):
    pass


class CreatedAt(MomentValue):
    pass


@validation(
    lambda canonical: canonical.physical_type in (PhysicalType.FLOAT, PhysicalType.STRING),
    "must be a float or a string",
)
class StringOrFloat(CanonicalValue):
    pass


_STRING_OR_FLOAT = StringOrFloat.definition().types


def test_type_names_are_derived_and_chained() -> None:
    assert Label.definition().types == ("label",)
    assert ShortLabel.definition().types == ("label", "short-label")
    assert StringValue.definition().types == ()
    assert ShortLabel("x").logical_types == ("label", "short-label")


def test_native_type_checks() -> None:
    with pytest.raises(ValidatorFailureError, match="must be a string"):
        Label(12)  # type: ignore[arg-type]
    with pytest.raises(ValidatorFailureError):
        IntValue(True)
    with pytest.raises(ValidatorFailureError):
        BoolValue(1)  # type: ignore[arg-type]
    with pytest.raises(ValidatorFailureError):
        NoneValue(0)  # type: ignore[arg-type]
    assert NoneValue().value is None
    assert BinaryValue(bytearray(b"ab")).value == b"ab"


def test_float_value_requires_finite_numbers() -> None:
    assert FloatValue(2).value == 2.0
    assert isinstance(FloatValue(2).value, float)
    for bad in (math.nan, math.inf, 10**400):
        with pytest.raises(ValidatorFailureError):
            FloatValue(bad)


def test_validator_description_and_message_results() -> None:
    assert Count(3).value == 3
    with pytest.raises(ValidatorFailureError) as excinfo:
        Count(-1)
    assert str(excinfo.value) == 'invalid value for "count": must not be negative'
    assert excinfo.value.issues[0].kind is IssueKind.VALIDATOR_FAILURE

    with pytest.raises(ValidatorFailureError, match="too long: 4"):
        Code("abcd")


def test_validator_exceptions_become_failures() -> None:
    @validation(lambda value: value.missing_attribute, "needs attribute")
    class Fragile(StringValue):
        pass

    with pytest.raises(ValidatorFailureError, match=r"needs attribute \(AttributeError: "):
        Fragile("x")


def test_validators_are_inherited_oldest_first() -> None:
    @validation(lambda value: value < 10, "must be below ten")
    class SmallCount(Count):
        pass

    with pytest.raises(ValidatorFailureError) as excinfo:
        SmallCount(-20)
    assert len(excinfo.value.issues) == 1
    assert "must not be negative" in str(excinfo.value)

    with pytest.raises(ValidatorFailureError, match="must be below ten"):
        SmallCount(12)


def test_from_value_dispatch() -> None:
    label = Label("x")
    assert Label.from_value(label) is label
    assert Label.from_value("y").value == "y"
    assert Label.from_value(StringCanonical("z", ("label",))).value == "z"
    assert Label.from_value(ShortLabel("w")).value == "w"
    with pytest.raises(LogicalTypeIncompatibleError):
        ShortLabel.from_value(Label("v"))


def test_from_canonical_checks_chain() -> None:
    with pytest.raises(LogicalTypeIncompatibleError) as excinfo:
        Label.from_canonical(StringCanonical("x", ("other",)))
    assert '"other" are not compatible with "label"' in str(excinfo.value)
    assert Label.from_canonical(StringCanonical("x", ("label", "deeper"))).value == "x"


def test_canonical_is_cached_only_when_chain_extends_target() -> None:
    exact = StringCanonical("x", ("label",))
    assert Label.from_canonical(exact).peek_canonical_representation() is exact

    untyped = StringCanonical("x")
    derived = StringValue.from_canonical(untyped).peek_canonical_representation()
    assert derived is untyped

    flex = FlexCanonical("x")
    rebuilt = Label.from_canonical(flex).peek_canonical_representation()
    assert rebuilt is not flex
    assert rebuilt.logical_types == ("label",)

    uncached = Label.from_canonical(exact, cache_canonical=False)
    assert uncached.peek_canonical_representation() is not exact


def test_peek_is_computed_once() -> None:
    label = Label("x")
    first = label.peek_canonical_representation()
    assert label.peek_canonical_representation() is first
    assert first.equals(StringCanonical("x", ("label",)))


def test_equality_and_hashing() -> None:
    assert Label("x") == Label("x")
    assert Label("x") != Label("y")
    assert Label("x") != StringValue("x")
    assert Label("x") == StringCanonical("x", ("label",))
    assert hash(Label("x")) == hash(Label("x"))
    assert (Label("x") == "x") is False


def test_flex_physical_coercion_into_primitives() -> None:
    assert Count.from_canonical(FlexCanonical("12")).value == 12
    assert FloatValue.from_canonical(FlexCanonical("1.5")).value == 1.5
    assert BoolValue.from_canonical(FlexCanonical("true")).value is True
    assert NoneValue.from_canonical(NoneCanonical()).value is None


def test_moment_value_normalizes_and_does_arithmetic() -> None:
    local = datetime(2024, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=1)))
    created = CreatedAt(local)
    assert created.value == datetime(2024, 1, 1, tzinfo=UTC)
    with pytest.raises(ValidatorFailureError):
        CreatedAt(datetime(2024, 1, 1))

    later = created.add_duration(Timeout.from_seconds(90))
    assert isinstance(later, CreatedAt)
    assert later.value == datetime(2024, 1, 1, 0, 1, 30, tzinfo=UTC)
    expected = datetime(2024, 1, 1, 0, 1, 28, 500_000, tzinfo=UTC)
    assert later.subtract_duration(1500).value == expected
    assert later.duration_since(created).ms == 90_000.0

    assert CreatedAt.from_ms(1500).ms == 1500
    assert CreatedAt.from_ms(1.5).ms == 1.5


def test_duration_value_conversions() -> None:
    timeout = Timeout.from_timedelta(timedelta(seconds=2))
    assert timeout.ms == 2000.0
    assert timeout.as_timedelta() == timedelta(seconds=2)
    assert Timeout.from_ms(5).value == 5.0
    assert Timeout.definition().types == ("timeout",)
    assert Timeout(1).peek_canonical_representation().physical_type is PhysicalType.FLOAT


def test_canonical_value_wraps_canonicals_and_runs_validators() -> None:
    wrapped = StringOrFloat.from_value(FloatCanonical(1.5, _STRING_OR_FLOAT))
    assert wrapped.value.float_value == 1.5
    text = StringOrFloat.from_value(StringCanonical("x", _STRING_OR_FLOAT))
    assert text.value.string_value == "x"
    with pytest.raises(ValidatorFailureError, match="must be a float or a string"):
        StringOrFloat.from_value(IntCanonical(1, _STRING_OR_FLOAT))
    with pytest.raises(ValidatorFailureError, match="requires a canonical"):
        StringOrFloat.from_value(1.5)


def test_primitive_conversions() -> None:
    assert str(Label("x")) == "x"
    assert int(Count(4)) == 4
    assert float(FloatValue(1.25)) == 1.25
    assert bool(BoolValue(False)) is False
    assert bytes(BinaryValue(b"z")) == b"z"
    assert repr(Label("x")) == "Label('x')"


def test_primitive_kinds_must_supply_the_canonical_hooks() -> None:
    class Bare(PrimitiveValue[int]):
        pass

    class ReadOnly(PrimitiveValue[int]):
        @classmethod
        def _read_canonical(cls, canonical: object) -> int:
            return 0

    for incomplete in (Bare, ReadOnly):
        with pytest.raises(TypeError, match="abstract"):
            incomplete(1)
