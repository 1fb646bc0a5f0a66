"""Value-object framework: validated, typed wrappers around canonical values."""

from canonical_values.valueobjects.base import ValueObject
from canonical_values.valueobjects.mappings import MappingValue
from canonical_values.valueobjects.primitives import (
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
)
from canonical_values.valueobjects.schema import (
    REGISTRY,
    FieldSpec,
    SchemaRegistry,
    ValueDefinition,
    ValueKind,
    derive_type_name,
    optional,
    required,
    validation,
)
from canonical_values.valueobjects.sequences import SequenceValue
from canonical_values.valueobjects.structs import StructValue

__all__ = [
    "REGISTRY",
    "BinaryValue",
    "BoolValue",
    "CanonicalValue",
    "DurationValue",
    "FieldSpec",
    "FloatValue",
    "IntValue",
    "MappingValue",
    "MomentValue",
    "NoneValue",
    "PrimitiveValue",
    "SchemaRegistry",
    "SequenceValue",
    "StringValue",
    "StructValue",
    "ValueDefinition",
    "ValueKind",
    "ValueObject",
    "derive_type_name",
    "optional",
    "required",
    "validation",
]
