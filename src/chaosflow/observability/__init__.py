"""Public observability primitives: structured logging with redaction and correlation."""

from chaosflow.observability.logging import (
    LogRedactor,
    correlation_scope,
    default_log_redactor,
    get_correlation_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LogRedactor",
    "correlation_scope",
    "default_log_redactor",
    "get_correlation_context",
    "setup_logging",
    "shutdown_logging",
]
