"""
Wall-clock helpers for session elapsed time and day/week boundaries.

The tool prints session start times as naive local timestamps, so "now"
must be taken in the same frame as the start time it is compared with.
"""

from datetime import date, datetime, timedelta
from typing import Optional


def now_like(reference: Optional[datetime] = None) -> datetime:
    """
    Get the current time in the same frame as a reference timestamp.

    Args:
        reference: Timestamp whose awareness (naive local vs tz-aware) to match

    Returns:
        Naive local now for naive references, aware now in the reference's tz otherwise
    """
    if reference is not None and reference.tzinfo is not None:
        return datetime.now(reference.tzinfo)
    return datetime.now()


def elapsed_seconds(start_time: datetime, now: Optional[datetime] = None) -> float:
    """
    Calculate elapsed seconds since a session started.

    Args:
        start_time: Session start timestamp reported by the tool
        now: Current time, defaults to wall-clock now in the start time's frame

    Returns:
        Elapsed time in seconds; negative if the start lies in the future
    """
    if now is None:
        now = now_like(start_time)

    return (now - start_time).total_seconds()


def week_start(day: date) -> date:
    """Monday of the week containing the given day."""
    return day - timedelta(days=day.weekday())


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as H:MM:SS for live session rows."""
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"
