"""Error hierarchy for canonical values, codecs and value objects.

Every error is a ``ValueError`` subclass so callers that already guard data
conversion with ``except ValueError`` keep working. Errors are raised at the
point of violation and never retried: they describe programming or data
problems, not transient failures.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import NoReturn


class IssueKind(StrEnum):
    LOGICAL_TYPE_INCOMPATIBLE = "logical_type_incompatible"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    UNKNOWN_FIELD = "unknown_field"
    VALIDATOR_FAILURE = "validator_failure"
    PHYSICAL_TYPE_MISMATCH = "physical_type_mismatch"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """One violation found while constructing a value object."""

    kind: IssueKind
    path: str
    message: str

    def render(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class CanonicalError(ValueError):
    """Base class for all errors raised by this package."""


class PhysicalTypeMismatchError(CanonicalError):
    """A payload getter was invoked that does not match the physical type."""


class MalformedEncodingError(CanonicalError):
    """Serialized input does not follow the expected wire grammar."""


class UseAfterExtractionError(CanonicalError):
    """Slots or elements of a value object were accessed after extraction."""


class SourceConsumedError(CanonicalError):
    """A one-shot streaming source was asked for a second cursor."""


class ValidationError(CanonicalError):
    """Construction of a value object failed; ``issues`` lists every violation."""

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues: tuple[ValidationIssue, ...] = tuple(issues)
        super().__init__("; ".join(issue.render() for issue in self.issues))


class LogicalTypeIncompatibleError(ValidationError):
    pass


class MissingRequiredFieldError(ValidationError):
    pass


class UnknownFieldError(ValidationError):
    pass


class ValidatorFailureError(ValidationError):
    pass


_ERROR_FOR_KIND: dict[IssueKind, type[ValidationError]] = {
    IssueKind.LOGICAL_TYPE_INCOMPATIBLE: LogicalTypeIncompatibleError,
    IssueKind.MISSING_REQUIRED_FIELD: MissingRequiredFieldError,
    IssueKind.UNKNOWN_FIELD: UnknownFieldError,
    IssueKind.VALIDATOR_FAILURE: ValidatorFailureError,
    IssueKind.PHYSICAL_TYPE_MISMATCH: ValidationError,
}


def raise_issues(issues: Iterable[ValidationIssue]) -> NoReturn:
    """Raise one error for all ``issues``, typed after the first violation."""
    collected = tuple(issues)
    if not collected:
        raise ValueError("raise_issues requires at least one issue")
    raise _ERROR_FOR_KIND[collected[0].kind](collected)


def fail(kind: IssueKind, path: str, message: str) -> NoReturn:
    raise_issues((ValidationIssue(kind, path, message),))


def issues_from_error(error: CanonicalError, path: str) -> tuple[ValidationIssue, ...]:
    """Re-root the issues carried by ``error`` below ``path``."""
    if isinstance(error, ValidationError):
        return tuple(
            ValidationIssue(issue.kind, join_path(path, issue.path), issue.message)
            for issue in error.issues
        )
    return (ValidationIssue(IssueKind.PHYSICAL_TYPE_MISMATCH, path, str(error)),)


def join_path(parent: str, child: str) -> str:
    if not parent:
        return child
    if not child:
        return parent
    if child.startswith("["):
        return f"{parent}{child}"
    return f"{parent}.{child}"


__all__ = [
    "CanonicalError",
    "IssueKind",
    "LogicalTypeIncompatibleError",
    "MalformedEncodingError",
    "MissingRequiredFieldError",
    "PhysicalTypeMismatchError",
    "SourceConsumedError",
    "UnknownFieldError",
    "UseAfterExtractionError",
    "ValidationError",
    "ValidationIssue",
    "ValidatorFailureError",
    "fail",
    "issues_from_error",
    "join_path",
    "raise_issues",
]
