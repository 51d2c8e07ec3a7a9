"""
Live session monitor module.

Tracks the single active time-tracking session through periodic polls
and publishes elapsed time and today's total to subscribers.
"""

from .polling import PollingTask
from .session_monitor import MonitorState, SessionMonitor, SessionTick

__all__ = [
    "MonitorState",
    "PollingTask",
    "SessionMonitor",
    "SessionTick",
]
