"""
canonical-values: unit tests for struct value objects

File: tests/unit/valueobjects/test_structs.py

Purpose
- Validate field declaration, name normalization, aggregated validation,
  unknown-field policies, extraction and derivation of structs.

What this test file should cover
- Required/optional semantics including explicit ``None``.
- One error carrying every field-level issue, validators only on clean fields.
- Canonical caching and forward references.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from canonical_values.canonical import (
    DictCanonical,
    PhysicalType,
    SourceKind,
    StreamingMappingCanonical,
    StringCanonical,
)
from canonical_values.codecs import (
    PlainJsonDeserializer,
    PlainJsonSerializer,
    TaggedJsonDeserializer,
    TaggedJsonSerializer,
)
from canonical_values.config import (
    CanonicalConfig,
    UnknownFieldPolicy,
    ValueObjectSettings,
    set_active_config,
)
from canonical_values.errors import (
    IssueKind,
    LogicalTypeIncompatibleError,
    MissingRequiredFieldError,
    UnknownFieldError,
    UseAfterExtractionError,
    ValidatorFailureError,
)
from canonical_values.valueobjects import (
    IntValue,
    NoneValue,
    StringValue,
    StructValue,
    optional,
    required,
    validation,
)


class Name(StringValue):
    pass


@validation(lambda value: any(char.isupper() for char in value), "needs an uppercase letter")
class FirstName(Name):
    pass


@validation(lambda value: value == value.upper(), "must be all uppercase")
class LastName(Name):
    pass


class Person(StructValue):
    first_name = FirstName.required()
    last_name = LastName.optional()


class LoosePerson(Person, unknown_fields="ignore"):
    pass


class StrictPerson(Person, unknown_fields=UnknownFieldPolicy.ERROR):
    pass


@validation(lambda slots: "last-name" in slots or "a last name is needed", "")
class FormalPerson(Person):
    pass


class Household(StructValue):
    head = required(Person)
    size = optional(IntValue)


class Node(StructValue):
    label = required(Name)
    child = optional(lambda: Node)


class Marker(StructValue):
    nothing = NoneValue.optional()


@pytest.fixture
def ignore_unknown_by_default() -> Iterator[None]:
    set_active_config(
        CanonicalConfig(valueobjects=ValueObjectSettings(unknown_fields=UnknownFieldPolicy.IGNORE))
    )
    yield


def test_definition_collects_fields_and_chain() -> None:
    definition = Person.definition()
    assert definition.types == ("person",)
    assert set(definition.fields) == {"first-name", "last-name"}
    assert definition.required_fields == ("first-name",)
    assert LoosePerson.definition().types == ("person", "loose-person")
    assert set(LoosePerson.definition().fields) == {"first-name", "last-name"}


def test_field_names_are_normalized() -> None:
    for person in (
        Person({"first_name": "Jantje"}),
        Person({"firstName": "Jantje"}),
        Person({"first-name": "Jantje"}),
        Person(first_name="Jantje"),
    ):
        assert person.first_name.value == "Jantje"
        assert person.last_name is None
        assert isinstance(person.first_name, FirstName)


def test_missing_required_field() -> None:
    with pytest.raises(MissingRequiredFieldError) as excinfo:
        Person({"last_name": "DE"})
    assert [issue.path for issue in excinfo.value.issues] == ["first-name"]
    assert str(excinfo.value) == "first-name: required field is missing"


def test_explicit_none_is_rejected_for_declared_fields() -> None:
    with pytest.raises(ValidatorFailureError) as excinfo:
        Person({"first_name": "Jantje", "last_name": None})
    assert excinfo.value.issues[0].path == "last-name"


def test_none_is_accepted_for_none_valued_fields() -> None:
    assert Marker(nothing=None).nothing.value is None


def test_field_issues_are_aggregated() -> None:
    with pytest.raises(ValidatorFailureError) as excinfo:
        Person({"first_name": "jantje", "last_name": "de"})
    assert [(issue.kind, issue.path) for issue in excinfo.value.issues] == [
        (IssueKind.VALIDATOR_FAILURE, "first-name"),
        (IssueKind.VALIDATOR_FAILURE, "last-name"),
    ]
    assert 'first-name: invalid value for "first-name": needs an uppercase letter' in str(
        excinfo.value
    )


def test_error_type_follows_first_issue() -> None:
    with pytest.raises(ValidatorFailureError) as excinfo:
        Person({"last_name": "de"})
    kinds = {issue.kind for issue in excinfo.value.issues}
    assert kinds == {IssueKind.VALIDATOR_FAILURE, IssueKind.MISSING_REQUIRED_FIELD}


def test_struct_validators_run_only_on_clean_fields() -> None:
    assert FormalPerson({"first_name": "J", "last_name": "DE"}).last_name.value == "DE"
    with pytest.raises(ValidatorFailureError, match="a last name is needed"):
        FormalPerson({"first_name": "J"})
    with pytest.raises(ValidatorFailureError) as excinfo:
        FormalPerson({"first_name": "j"})
    assert len(excinfo.value.issues) == 1
    assert excinfo.value.issues[0].path == "first-name"


def test_nested_issue_paths() -> None:
    with pytest.raises(ValidatorFailureError) as excinfo:
        Household({"head": {"first_name": "jantje"}, "size": "three"})
    assert [issue.path for issue in excinfo.value.issues] == ["head.first-name", "size"]


def test_forward_references_resolve_lazily() -> None:
    tree = Node({"label": "a", "child": {"label": "b"}})
    assert tree.child.label.value == "b"
    assert tree.child.child is None


def test_keep_policy_retains_unknowns_as_canonicals() -> None:
    person = Person({"first_name": "J", "nick": StringCanonical("x")})
    assert person.get("nick") == StringCanonical("x")
    canonical = person.peek_canonical_representation()
    assert set(canonical.as_dict()) == {"first-name", "nick"}

    native = Person({"first_name": "J", "nick": "x", "tags": ["a", "b"]})
    assert native.get("nick") == StringCanonical("x")
    assert native.get("tags").physical_type is PhysicalType.SEQUENCE
    assert native.peek_canonical_representation().get_mapping_value("nick").string_value == "x"

    with pytest.raises(ValidatorFailureError) as excinfo:
        Person({"first_name": "J", "nick": object()})
    assert excinfo.value.issues[0].path == "nick"


def test_ignore_and_error_policies() -> None:
    loose = LoosePerson({"first_name": "J", "nick": "x"})
    assert "nick" not in loose
    with pytest.raises(UnknownFieldError, match="nick: unknown field"):
        StrictPerson({"first_name": "J", "nick": "x"})


@pytest.mark.usefixtures("ignore_unknown_by_default")
def test_configured_policy_applies_when_class_sets_none() -> None:
    person = Person({"first_name": "J", "nick": "x"})
    assert len(person) == 1
    with pytest.raises(UnknownFieldError):
        StrictPerson({"first_name": "J", "nick": "x"})


def test_from_canonical_rebuilds_and_caches() -> None:
    canonical = DictCanonical(
        {
            "first-name": StringCanonical("Jantje", ("name", "first-name")),
            "last-name": StringCanonical("DE", ("name", "last-name")),
        },
        ("person",),
    )
    person = Person.from_canonical(canonical)
    assert person.last_name.value == "DE"
    assert person.peek_canonical_representation() is canonical
    assert person == canonical

    with pytest.raises(LogicalTypeIncompatibleError):
        Person.from_canonical(DictCanonical({}, ("animal",)))


def test_from_streaming_canonical_derives_a_fresh_representation() -> None:
    stream = StreamingMappingCanonical(
        iter([("first-name", StringCanonical("Jantje", ("name", "first-name")))]),
        ("person",),
    )
    person = Person.from_canonical(stream)
    representation = person.peek_canonical_representation()
    assert representation is not stream
    assert representation.source_kind is SourceKind.MATERIALIZED
    assert person == Person({"first_name": "Jantje"})

    data = TaggedJsonSerializer().serialize(person)
    assert Person.from_canonical(TaggedJsonDeserializer().deserialize(data)) == person


def test_child_chain_mismatch_is_reported_with_path() -> None:
    canonical = DictCanonical(
        {"first-name": StringCanonical("Jantje", ("other",))},
        ("person",),
    )
    with pytest.raises(LogicalTypeIncompatibleError) as excinfo:
        Person.from_canonical(canonical)
    assert excinfo.value.issues[0].path == "first-name"


def test_dropped_fields_prevent_caching() -> None:
    canonical = DictCanonical(
        {
            "first-name": StringCanonical("J", ("name", "first-name")),
            "nick": StringCanonical("x"),
        },
        ("person", "loose-person"),
    )
    loose = LoosePerson.from_canonical(canonical)
    representation = loose.peek_canonical_representation()
    assert representation is not canonical
    assert set(representation.as_dict()) == {"first-name"}
    assert representation.get_mapping_value("first-name").logical_types == ("name", "first-name")


def test_canonical_form_types_children() -> None:
    canonical = Person({"first_name": "Jantje"}).peek_canonical_representation()
    assert canonical.physical_type is PhysicalType.MAPPING
    assert canonical.logical_types == ("person",)
    first = canonical.get_mapping_value("first-name")
    assert first is not None
    assert first.logical_types == ("name", "first-name")


def test_extract_slots_hands_out_once() -> None:
    person = Person({"first_name": "Jantje"})
    slots = person.extract_slots()
    assert set(slots) == {"first-name"}
    with pytest.raises(UseAfterExtractionError):
        _ = person.first_name
    with pytest.raises(UseAfterExtractionError):
        person.extract_slots()
    assert repr(person) == "Person(<extracted>)"


def test_derive_replaces_and_removes_fields() -> None:
    person = Person({"first_name": "Jantje"})
    with_last = person.derive(last_name="DE")
    assert with_last.last_name.value == "DE"
    assert person.last_name is None
    assert with_last.derive(last_name=None).last_name is None
    with pytest.raises(MissingRequiredFieldError):
        person.derive(first_name=None)


def test_from_slots_uses_canonical_names() -> None:
    person = Person.from_slots({"first-name": FirstName("Jantje")})
    assert person.first_name.value == "Jantje"
    with pytest.raises(UnknownFieldError):
        StrictPerson.from_slots({"first-name": "Jantje", "first_name": "Jantje"})


def test_fields_are_read_only_and_mapping_like() -> None:
    person = Person({"first_name": "Jantje"})
    with pytest.raises(AttributeError):
        person.first_name = FirstName("Other")
    assert person["first_name"].value == "Jantje"
    assert "first-name" in person
    assert list(person) == ["first-name"]
    with pytest.raises(KeyError):
        _ = person["last_name"]


def test_native_input_must_be_a_mapping() -> None:
    with pytest.raises(ValidatorFailureError, match="expects a mapping"):
        Person.from_value(12)


def test_from_value_accepts_subclasses_and_rechecks_others() -> None:
    loose = LoosePerson({"first_name": "J"})
    assert Person.from_value(loose) is loose
    formal = FormalPerson({"first_name": "J", "last_name": "DE"})
    assert Person.from_value(formal) is formal
    with pytest.raises(LogicalTypeIncompatibleError):
        FormalPerson.from_value(Person({"first_name": "J"}))


def test_plain_json_is_retyped_by_from_canonical() -> None:
    person = Person({"first_name": "Jantje", "last_name": "DE"})
    flex = PlainJsonDeserializer().deserialize(PlainJsonSerializer().serialize(person))
    assert flex.logical_types == ()

    retyped = Person.from_canonical(flex)
    assert retyped == person
    assert retyped.peek_canonical_representation() is not flex
    assert retyped.peek_canonical_representation().logical_types == ("person",)
