"""
Mapping of foreign failures onto the tool error taxonomy.

The CLI reports failures only as an exit code plus free-form diagnostic
text, so classification is necessarily heuristic and matches on phrases
the tool is known to print.
"""

import socket
import subprocess
from typing import Optional, Sequence
from urllib.error import URLError

from .taxonomy import (
    ErrorType,
    ExecutionFailedError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ToolError,
    ToolNotInstalledError,
    ToolTimeoutError,
    ValidationError,
)

# Shell convention for "command not found"
EXIT_COMMAND_NOT_FOUND = 127

_NOT_INSTALLED_MARKERS = ("command not found", "no such file or directory")
_NOT_FOUND_MARKERS = ("not found", "does not exist", "no rows in result set")
_PERMISSION_MARKERS = ("permission denied", "eacces", "operation not permitted")
_TIMEOUT_MARKERS = ("timed out", "timeout", "deadline exceeded")
_NETWORK_MARKERS = ("connection refused", "connection reset", "network is unreachable",
                    "no such host", "dial tcp")
_VALIDATION_MARKERS = ("invalid", "is required", "must be", "required flag")


def classify_exception(exc: BaseException) -> ErrorType:
    """Return the taxonomy category for any exception."""
    if isinstance(exc, ToolError):
        return exc.error_type
    if isinstance(exc, (subprocess.TimeoutExpired, socket.timeout, TimeoutError)):
        return ErrorType.TIMEOUT
    if isinstance(exc, FileNotFoundError):
        return ErrorType.TOOL_NOT_INSTALLED
    if isinstance(exc, PermissionError):
        return ErrorType.PERMISSION_DENIED
    if isinstance(exc, (URLError, ConnectionError)):
        return ErrorType.NETWORK_ERROR
    return ErrorType.UNKNOWN


def is_retryable(exc: BaseException) -> bool:
    """Only timeouts and transient network failures are worth retrying."""
    return classify_exception(exc) in (ErrorType.TIMEOUT, ErrorType.NETWORK_ERROR)


def error_from_cli_failure(
    exit_code: int,
    stderr: str,
    argv: Optional[Sequence[str]] = None
) -> ToolError:
    """
    Build a taxonomy error from a failed CLI invocation.

    Args:
        exit_code: Process exit status (non-zero)
        stderr: Diagnostic text printed by the tool
        argv: Arguments the tool was invoked with

    Returns:
        The most specific ToolError subclass the diagnostic text supports
    """
    text = (stderr or "").strip()
    lowered = text.lower()
    message = text.splitlines()[-1] if text else f"exit status {exit_code}"
    context = {"argv": list(argv or []), "exit_code": exit_code}

    if exit_code == EXIT_COMMAND_NOT_FOUND or any(m in lowered for m in _NOT_INSTALLED_MARKERS):
        return ToolNotInstalledError(message, context=context)
    if any(m in lowered for m in _PERMISSION_MARKERS):
        return PermissionDeniedError(message, context=context)
    if any(m in lowered for m in _TIMEOUT_MARKERS):
        return ToolTimeoutError(message, context=context)
    if any(m in lowered for m in _NETWORK_MARKERS):
        return NetworkError(message, context=context)
    if any(m in lowered for m in _NOT_FOUND_MARKERS):
        return NotFoundError(message, context=context)
    if any(m in lowered for m in _VALIDATION_MARKERS):
        return ValidationError(message, context=context)

    return ExecutionFailedError(message, exit_code=exit_code, stderr=text, context=context)


def error_from_http_status(status_code: int, message: str) -> ToolError:
    """Map a non-2xx response (or success=false envelope) onto the taxonomy."""
    context = {"status_code": status_code}

    if status_code == 404:
        return NotFoundError(message, context=context)
    if status_code in (401, 403):
        return PermissionDeniedError(message, context=context)
    if status_code in (400, 422):
        return ValidationError(message, context=context)
    if status_code in (408, 504):
        return ToolTimeoutError(message, context=context)

    return ExecutionFailedError(message, status_code=status_code, context=context)
