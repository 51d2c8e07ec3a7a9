"""
Centralized logging configuration for the UNG bridge.

This module provides standardized logging configuration using structlog
for all components. The command bus, cache and session monitor all log
through loggers obtained here so that every tool invocation, retry and
state transition is observable in one consistent format.
"""
import logging
import sys
from typing import Any, Optional, TextIO

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None,
    stream: Optional[TextIO] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
        stream: Destination for log lines; stderr by default, since a host
            process may read the bridge's stdout
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=stream or sys.stderr,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_bus_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the command bus subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for command execution events
    """
    return get_logger(name).bind(subsystem="command_bus")


def get_monitor_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the live session monitor subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for session state transitions
    """
    return get_logger(name).bind(subsystem="session_monitor")


def log_command_event(
    logger: FilteringBoundLogger,
    command_id: str,
    event: str,
    attempt: int,
    **context: Any
) -> None:
    """
    Log a command bus event with standardized format.

    Args:
        logger: Structlog logger instance
        command_id: Identifier of the queued command
        event: One of enqueued, started, succeeded, retrying, failed
        attempt: 1-based attempt number
        context: Additional context data (label, error, duration_ms, ...)
    """
    bound_logger = logger.bind(
        command_id=command_id,
        command_event=event,
        attempt=attempt,
        **context
    )

    if event == "failed":
        bound_logger.error("Command failed")
    elif event == "retrying":
        bound_logger.warning("Command retrying")
    elif event == "enqueued":
        bound_logger.debug("Command enqueued")
    else:
        bound_logger.info(f"Command {event}")


def log_session_transition(
    logger: FilteringBoundLogger,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a session monitor state transition with standardized format.

    Args:
        logger: Structlog logger instance
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Session state transition")
