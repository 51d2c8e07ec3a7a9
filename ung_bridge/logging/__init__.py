"""
Logging configuration and utilities for the UNG bridge.
"""
from .config import (
    configure_logging,
    get_bus_logger,
    get_logger,
    get_monitor_logger,
    log_command_event,
    log_session_transition,
)

__all__ = [
    "configure_logging",
    "get_logger",
    # Subsystem loggers
    "get_bus_logger",
    "get_monitor_logger",
    "log_command_event",
    "log_session_transition",
]
