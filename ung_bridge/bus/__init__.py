"""
Command bus module.

Serializes every invocation of the external tool through a single
in-process queue with timeouts and front-of-queue retries.
"""

from .command_bus import BusStatus, CommandBus, CommandOptions

__all__ = [
    "BusStatus",
    "CommandBus",
    "CommandOptions",
]
