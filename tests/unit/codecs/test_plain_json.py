"""Unit tests for the plain JSON codec and the type-inferring flex canonical."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest

from canonical_values.canonical import (
    ArrayCanonical,
    BinaryCanonical,
    BoolCanonical,
    DictCanonical,
    FloatCanonical,
    IntCanonical,
    MomentCanonical,
    NoneCanonical,
    PhysicalType,
    StringCanonical,
)
from canonical_values.canonical.moments import EPOCH
from canonical_values.codecs import FlexCanonical, PlainJsonDeserializer, PlainJsonSerializer
from canonical_values.config import CodecSettings
from canonical_values.errors import MalformedEncodingError, PhysicalTypeMismatchError


def _plain(value: object) -> object:
    return json.loads(PlainJsonSerializer(CodecSettings()).serialize(value))


def test_plain_encoding_drops_types_and_stringifies_scalars() -> None:
    value = DictCanonical(
        {
            "name": StringCanonical("Jantje", ("first-name",)),
            "age": IntCanonical(12),
            "score": FloatCanonical(12.5),
            "active": BoolCanonical(True),
            "photo": BinaryCanonical(b"\x01\x02"),
            "born": MomentCanonical(EPOCH + timedelta(milliseconds=1500)),
            "note": NoneCanonical(),
            "tags": ArrayCanonical([StringCanonical("a"), NoneCanonical()]),
        },
        ("person",),
    )
    assert _plain(value) == {
        "name": "Jantje",
        "age": "12",
        "score": "12.5",
        "active": "true",
        "photo": "AQI=",
        "born": 1500,
        "tags": ["a", None],
    }


def test_fractional_moment_is_a_float() -> None:
    assert _plain(MomentCanonical(EPOCH + timedelta(microseconds=1500))) == 1.5


def test_plain_decoding_yields_flex() -> None:
    decoded = PlainJsonDeserializer().deserialize(b'{"age": "12", "tags": ["a"]}')
    assert isinstance(decoded, FlexCanonical)
    assert decoded.logical_types == ()
    assert decoded.physical_type is PhysicalType.MAPPING
    age = decoded.get_mapping_value("age")
    assert age is not None and age.int_value == 12
    tags = decoded.get_mapping_value("tags")
    assert tags is not None and tags.size == 1


def test_plain_decoding_rejects_bad_json() -> None:
    with pytest.raises(MalformedEncodingError):
        PlainJsonDeserializer().deserialize_from_string("{")


def test_flex_is_compatible_with_every_chain() -> None:
    flex = FlexCanonical("x")
    assert flex.is_a(("anything", "at-all"))
    assert flex.is_a(StringCanonical("y", ("typed",)))
    assert flex.is_flexible


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(True, True), ("true", True), ("false", False)],
)
def test_flex_bool_coercion(raw: object, expected: bool) -> None:
    assert FlexCanonical(raw).bool_value is expected


def test_flex_numeric_coercions() -> None:
    assert FlexCanonical("12").int_value == 12
    assert FlexCanonical(12.0).int_value == 12
    assert FlexCanonical("1e3").int_value == 1000
    assert FlexCanonical("12.5").float_value == 12.5
    assert FlexCanonical(3).float_value == 3.0
    with pytest.raises(PhysicalTypeMismatchError):
        _ = FlexCanonical("12.5").int_value
    with pytest.raises(PhysicalTypeMismatchError):
        _ = FlexCanonical(True).int_value
    with pytest.raises(PhysicalTypeMismatchError):
        _ = FlexCanonical("abc").float_value


def test_flex_moment_coercions() -> None:
    expected = EPOCH + timedelta(milliseconds=1500)
    assert FlexCanonical(1500).moment_value == expected
    assert FlexCanonical("1500").moment_value == expected
    assert FlexCanonical("1970-01-01T00:00:01.5").moment_value == expected
    aware = datetime(2024, 1, 1, tzinfo=UTC)
    assert FlexCanonical(aware).moment_value == aware
    with pytest.raises(PhysicalTypeMismatchError):
        _ = FlexCanonical("yesterday").moment_value


def test_flex_binary_none_and_string_coercions() -> None:
    assert FlexCanonical("AQI=").binary_value == b"\x01\x02"
    assert FlexCanonical(None).none_value is None
    assert FlexCanonical("").none_value is None
    assert FlexCanonical("x").string_value == "x"
    with pytest.raises(PhysicalTypeMismatchError):
        _ = FlexCanonical(12).string_value
    with pytest.raises(PhysicalTypeMismatchError):
        _ = FlexCanonical("x").first_sequence_item


def test_flex_equality_compares_under_the_typed_side() -> None:
    assert FlexCanonical("12").equals(IntCanonical(12, ("count",)))
    assert IntCanonical(12, ("count",)).equals(FlexCanonical("12"))
    assert not FlexCanonical("13").equals(IntCanonical(12))
    assert not FlexCanonical("abc").equals(IntCanonical(12))
    assert FlexCanonical(["1", "2"]).equals(ArrayCanonical([IntCanonical(1), IntCanonical(2)]))
