"""Public observability primitives: structured logging setup and correlation scopes."""

from canonical_values.observability.logging import (
    LoggingConfig,
    configure_logging,
    correlation_scope,
    reset_logging,
)

__all__ = [
    "LoggingConfig",
    "configure_logging",
    "correlation_scope",
    "reset_logging",
]
