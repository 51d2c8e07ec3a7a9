"""
Error taxonomy for invocations of the external ung tool.

Every failure surfaced by the bridge, whether it came from the CLI, the
remote HTTP variant or local input validation, is one of these classes.
"""

from enum import Enum
from typing import Any, Optional

from .recovery import RecoverableError, UnrecoverableError


class ErrorType(str, Enum):
    """Closed set of failure categories."""
    TOOL_NOT_INSTALLED = "tool_not_installed"
    EXECUTION_FAILED = "execution_failed"
    PARSE_ERROR = "parse_error"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class ToolError(Exception):
    """Base class for all errors raised by the mediation layer."""

    error_type = ErrorType.UNKNOWN
    recoverable = False
    retryable = False
    requires_setup = False

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.attempts = 0

    def user_message(self, context_label: Optional[str] = None) -> str:
        """Human-readable message suitable for a notification."""
        prefix = f"{context_label}: " if context_label else ""
        return prefix + self._describe()

    def _describe(self) -> str:
        return self.message


class ToolNotInstalledError(UnrecoverableError, ToolError):
    """The ung executable could not be located or started."""

    error_type = ErrorType.TOOL_NOT_INSTALLED

    def __init__(self, message: str, executable: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.executable = executable

    def _describe(self) -> str:
        return "UNG CLI is not installed or not in PATH. Please install it first."


class ExecutionFailedError(ToolError):
    """The tool ran but reported failure (non-zero exit or non-2xx status)."""

    error_type = ErrorType.EXECUTION_FAILED

    def __init__(self, message: str, exit_code: Optional[int] = None,
                 stderr: Optional[str] = None, status_code: Optional[int] = None,
                 **kwargs):
        super().__init__(message, **kwargs)
        self.exit_code = exit_code
        self.stderr = stderr
        self.status_code = status_code

    def _describe(self) -> str:
        return f"Failed to execute UNG command. {self.message}"


class ParseError(ToolError):
    """Tool output did not match any recognized shape."""

    error_type = ErrorType.PARSE_ERROR

    def __init__(self, message: str, entity_type: Optional[str] = None,
                 raw_excerpt: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.entity_type = entity_type
        self.raw_excerpt = raw_excerpt

    def _describe(self) -> str:
        return "Failed to parse CLI output. The data format may have changed."


class ValidationError(ToolError):
    """Caller-supplied input was invalid; never sent to the tool."""

    error_type = ErrorType.VALIDATION_ERROR

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def _describe(self) -> str:
        return f"Validation error: {self.message}"


class NotFoundError(ToolError):
    """The requested entity does not exist in the tool's store."""

    error_type = ErrorType.NOT_FOUND

    def _describe(self) -> str:
        return f"Resource not found: {self.message}"


class PermissionDeniedError(UnrecoverableError, ToolError):
    """The tool or its store could not be accessed."""

    error_type = ErrorType.PERMISSION_DENIED

    def _describe(self) -> str:
        return f"Permission denied: {self.message}"


class NetworkError(RecoverableError, ToolError):
    """Transient transport failure talking to the tool or the API."""

    error_type = ErrorType.NETWORK_ERROR

    def _describe(self) -> str:
        return f"Network error: {self.message}"


class ToolTimeoutError(RecoverableError, ToolError):
    """An invocation did not finish within its timeout."""

    error_type = ErrorType.TIMEOUT

    def __init__(self, message: str, timeout_seconds: Optional[float] = None,
                 **kwargs):
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds

    def _describe(self) -> str:
        return "Operation timed out. Please try again."


class UnknownToolError(ToolError):
    """Anything that does not fit another category."""

    error_type = ErrorType.UNKNOWN


class MutationCancelled(ToolError):
    """A destructive mutation was declined at the confirmation step."""

    error_type = ErrorType.VALIDATION_ERROR

    def _describe(self) -> str:
        return f"Cancelled: {self.message}"
