"""
Recovery strategy classifications for error handling.

These mixins categorize tool errors by their recovery characteristics and
tell the command bus which failures it may retry on its own.
"""


class RecoverableError(Exception):
    """Mixin for errors the command bus retries transparently."""

    recoverable = True
    retryable = True


class UnrecoverableError(Exception):
    """Mixin for errors that require setup or human intervention."""

    recoverable = False
    retryable = False
    requires_setup = True
