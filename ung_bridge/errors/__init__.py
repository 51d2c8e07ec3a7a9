"""
Error classification system for the tool-mediation layer.

This module provides the exception hierarchy for every failure encountered
while invoking the external ung tool, parsing its output, or validating
caller input before it reaches the tool.
"""

from .classify import (
    classify_exception,
    error_from_cli_failure,
    error_from_http_status,
    is_retryable,
)
from .recovery import (
    RecoverableError,
    UnrecoverableError,
)
from .taxonomy import (
    ErrorType,
    ExecutionFailedError,
    MutationCancelled,
    NetworkError,
    NotFoundError,
    ParseError,
    PermissionDeniedError,
    ToolError,
    ToolNotInstalledError,
    ToolTimeoutError,
    UnknownToolError,
    ValidationError,
)

__all__ = [
    # Taxonomy
    "ErrorType",
    "ToolError",
    "ToolNotInstalledError",
    "ExecutionFailedError",
    "ParseError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    "NetworkError",
    "ToolTimeoutError",
    "UnknownToolError",
    "MutationCancelled",
    # Recovery strategies
    "RecoverableError",
    "UnrecoverableError",
    # Classification
    "classify_exception",
    "is_retryable",
    "error_from_cli_failure",
    "error_from_http_status",
]
