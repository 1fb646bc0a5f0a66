"""canonical-values: a typed canonical value model, value objects and JSON codecs."""

from canonical_values.canonical import (
    ArrayCanonical,
    Canonical,
    CanonicalSource,
    DictCanonical,
    MapCanonical,
    PhysicalType,
    SourceKind,
    canonical_from_native,
    to_canonical,
    types_is,
)
from canonical_values.codecs import (
    CanonicalJsonDeSer,
    FlexCanonical,
    PlainJsonDeserializer,
    PlainJsonSerializer,
    TaggedJsonDeserializer,
    TaggedJsonSerializer,
)
from canonical_values.config import CanonicalConfig, load_config
from canonical_values.errors import (
    CanonicalError,
    LogicalTypeIncompatibleError,
    MalformedEncodingError,
    MissingRequiredFieldError,
    PhysicalTypeMismatchError,
    SourceConsumedError,
    UnknownFieldError,
    UseAfterExtractionError,
    ValidationError,
    ValidatorFailureError,
)
from canonical_values.valueobjects import (
    BinaryValue,
    BoolValue,
    CanonicalValue,
    DurationValue,
    FloatValue,
    IntValue,
    MappingValue,
    MomentValue,
    NoneValue,
    SequenceValue,
    StringValue,
    StructValue,
    ValueObject,
    optional,
    required,
    validation,
)

__version__ = "0.1.0"

__all__ = [
    "ArrayCanonical",
    "BinaryValue",
    "BoolValue",
    "Canonical",
    "CanonicalConfig",
    "CanonicalError",
    "CanonicalJsonDeSer",
    "CanonicalSource",
    "CanonicalValue",
    "DictCanonical",
    "DurationValue",
    "FlexCanonical",
    "FloatValue",
    "IntValue",
    "LogicalTypeIncompatibleError",
    "MalformedEncodingError",
    "MapCanonical",
    "MappingValue",
    "MissingRequiredFieldError",
    "MomentValue",
    "NoneValue",
    "PhysicalType",
    "PhysicalTypeMismatchError",
    "PlainJsonDeserializer",
    "PlainJsonSerializer",
    "SequenceValue",
    "SourceConsumedError",
    "SourceKind",
    "StringValue",
    "StructValue",
    "TaggedJsonDeserializer",
    "TaggedJsonSerializer",
    "UnknownFieldError",
    "UseAfterExtractionError",
    "ValidationError",
    "ValidatorFailureError",
    "ValueObject",
    "__version__",
    "canonical_from_native",
    "load_config",
    "optional",
    "required",
    "to_canonical",
    "types_is",
    "validation",
]
