"""
canonical-values: unit tests for schema declaration

File: tests/unit/valueobjects/test_schema.py

Purpose
- Validate type-name derivation, definition inheritance, validator semantics
  and the registry lookups used to materialize canonicals.
"""

from __future__ import annotations

import pytest

from canonical_values.canonical import StringCanonical
from canonical_values.errors import LogicalTypeIncompatibleError, ValidatorFailureError
from canonical_values.valueobjects import (
    REGISTRY,
    FieldSpec,
    StringValue,
    StructValue,
    ValueKind,
    derive_type_name,
    required,
    validation,
)
from canonical_values.valueobjects.schema import Validator, resolve_value_class


class SchemaSample(StringValue):
    pass


class RenamedSample(SchemaSample, type_name="renamed"):
    pass


class SilentSample(SchemaSample, type_name=""):
    pass


calls: list[str] = []


@validation(lambda value: calls.append("first") or True)
class OrderedSample(SchemaSample):
    pass


@validation(lambda value: calls.append("second") or True)
class OrderedChild(OrderedSample):
    pass


class Envelope(StructValue):
    body = required(SchemaSample, name="payload")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("MySubString", "my-sub-string"),
        ("first_name", "first-name"),
        ("firstName", "first-name"),
        ("Value2", "value2"),
        ("already-fine", None),
        ("", ""),
    ],
)
def test_derive_type_name(name: str, expected: str | None) -> None:
    if expected is None:
        with pytest.raises(ValueError, match="invalid character"):
            derive_type_name(name)
    else:
        assert derive_type_name(name) == expected


def test_type_chains_extend_the_base_chain() -> None:
    assert SchemaSample.definition().types == ("schema-sample",)
    assert RenamedSample.definition().types == ("schema-sample", "renamed")
    assert SilentSample.definition().types == ("schema-sample",)
    assert RenamedSample.definition().kind is ValueKind.PRIMITIVE
    assert RenamedSample.definition().is_a(SchemaSample.definition())
    assert not SchemaSample.definition().is_a(RenamedSample.definition())


def test_validators_run_oldest_first() -> None:
    calls.clear()
    OrderedChild("x")
    assert calls == ["first", "second"]


@pytest.mark.parametrize(
    ("result", "expected"),
    [
        (True, None),
        (None, None),
        ("", None),
        ("too short", "too short"),
        (False, "describes the check"),
        (0, "describes the check"),
    ],
)
def test_validator_results(result: object, expected: str | None) -> None:
    assert Validator(lambda subject: result, "describes the check").run("x") == expected


def test_validator_exceptions_become_messages() -> None:
    def explode(subject: object) -> bool:
        raise RuntimeError("boom")

    assert Validator(explode, "must parse").run("x") == "must parse (RuntimeError: boom)"
    assert Validator(explode).run("x") == "RuntimeError: boom"
    assert Validator(lambda subject: False).run("x") == "validation failed"


def test_field_specs() -> None:
    spec = Envelope.definition().fields["payload"]
    assert isinstance(spec, FieldSpec)
    assert spec.attribute == "body"
    assert spec.value_class is SchemaSample
    assert Envelope(payload="x").body.value == "x"
    assert Envelope.body is spec
    with pytest.raises(TypeError, match="not attached"):
        _ = FieldSpec(SchemaSample, required=True).name


def test_resolve_value_class() -> None:
    assert resolve_value_class(SchemaSample) is SchemaSample
    assert resolve_value_class(lambda: SchemaSample) is SchemaSample
    with pytest.raises(TypeError):
        resolve_value_class(str)


def test_registry_lookup_and_materialization() -> None:
    assert SchemaSample in REGISTRY
    assert REGISTRY.find_class(("schema-sample", "renamed")) is RenamedSample
    assert REGISTRY.find_class(("unregistered-chain",)) is None

    materialized = REGISTRY.from_canonical(StringCanonical("x", ("schema-sample", "renamed")))
    assert isinstance(materialized, RenamedSample)
    assert materialized.value == "x"

    with pytest.raises(LogicalTypeIncompatibleError, match="no value object registered"):
        REGISTRY.from_canonical(StringCanonical("x", ("unregistered-chain",)))


def test_unregistered_classes_have_no_definition() -> None:
    class Plain:
        pass

    with pytest.raises(TypeError, match="not a registered value object"):
        REGISTRY.get(Plain)
    with pytest.raises(TypeError):
        validation(lambda value: True)(Plain)


def test_validation_decorator_reports_type_name() -> None:
    @validation(lambda value: value.isdigit(), "digits only")
    class Digits(StringValue):
        pass

    with pytest.raises(ValidatorFailureError, match='invalid value for "digits": digits only'):
        Digits("12a")
