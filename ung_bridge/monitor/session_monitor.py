"""
Live session monitor.

Two-state machine (Idle, Tracking) driven by periodic status polls.
Elapsed time is always recomputed as wall-clock now minus the session's
start time, so missed or late polls never accumulate drift.

State transitions:
- Idle → Tracking: a poll reports an active session
- Tracking → Tracking: a poll reports a different session (logged, new start)
- Tracking → Idle: a poll reports no session, the stop command succeeded,
  the poll failed, or the reported start lies in the future
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from ..config.defaults import MonitorParams
from ..errors import ToolError
from ..logging import get_monitor_logger, log_session_transition
from ..models import ActiveSession, NoSession, Record, SessionStatus, TrackingSession
from ..utils.time import elapsed_seconds, now_like
from .polling import PollingTask

logger = get_monitor_logger(__name__)


class MonitorState(str, Enum):
    """Live session state."""
    IDLE = "idle"
    TRACKING = "tracking"


@dataclass(frozen=True)
class SessionTick:
    """Snapshot published to subscribers after every poll."""
    state: MonitorState
    session: Optional[ActiveSession]
    elapsed_seconds: float
    today_minutes: int
    polled_at: datetime


Subscriber = Callable[[SessionTick], None]


def _same_session(a: ActiveSession, b: ActiveSession) -> bool:
    if a.session_id is not None and b.session_id is not None:
        return a.session_id == b.session_id
    return (a.project, a.client_name, a.start_time) == (b.project, b.client_name, b.start_time)


class SessionMonitor:
    """
    Polls the active session and today's total, publishing SessionTicks.

    The fetch callables are expected to route through the command bus;
    the monitor itself never invokes the tool directly.
    """

    def __init__(
        self,
        fetch_status: Callable[[], SessionStatus],
        fetch_sessions: Callable[[], list[Record]],
        session_interval: float = 5.0,
        today_interval: float = 60.0,
        clock: Callable[[Optional[datetime]], datetime] = now_like
    ):
        self._fetch_status = fetch_status
        self._fetch_sessions = fetch_sessions
        self._clock = clock

        self._lock = threading.Lock()
        self._state = MonitorState.IDLE
        self._session: Optional[ActiveSession] = None
        self._elapsed = 0.0
        self._today_minutes = 0
        self._subscribers: list[Subscriber] = []
        # Bumped by start/stop commands so older polls are discarded
        self._generation = 0

        self.session_task = PollingTask("session", session_interval, self.poll_session)
        self.today_task = PollingTask("today", today_interval, self.poll_today)

    @classmethod
    def from_params(
        cls,
        params: MonitorParams,
        fetch_status: Callable[[], SessionStatus],
        fetch_sessions: Callable[[], list[Record]]
    ) -> "SessionMonitor":
        """Create a monitor from configuration parameters."""
        return cls(
            fetch_status=fetch_status,
            fetch_sessions=fetch_sessions,
            session_interval=params.session_poll_seconds,
            today_interval=params.today_poll_seconds,
        )

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def session(self) -> Optional[ActiveSession]:
        return self._session

    def start(self) -> None:
        """Start both polling schedules."""
        self.session_task.start()
        self.today_task.start()

    def stop(self) -> None:
        """Stop both polling schedules."""
        self.session_task.stop()
        self.today_task.stop()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a tick subscriber.

        Returns:
            Callable that removes the subscription
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> SessionTick:
        """Current state without polling."""
        with self._lock:
            return self._snapshot()

    def poll_session(self) -> SessionTick:
        """
        Fetch the session status and apply the resulting transition.

        A poll that was in flight when a start or stop command succeeded
        is discarded; the command's outcome is newer than its status.
        """
        with self._lock:
            generation = self._generation

        try:
            status = self._fetch_status()
        except ToolError as e:
            with self._lock:
                if generation != self._generation:
                    return self._discard_stale(generation)
                logger.warning(
                    "Session poll failed, treating as idle",
                    error=str(e),
                    error_type=e.error_type.value
                )
                self._go_idle("poll_failed")
                tick = self._snapshot()
            self._publish(tick)
            return tick

        with self._lock:
            if generation != self._generation:
                return self._discard_stale(generation)
            if isinstance(status, NoSession):
                self._go_idle("no_session")
            else:
                self._observe(status)
            tick = self._snapshot()

        self._publish(tick)
        return tick

    def poll_today(self) -> int:
        """Recompute today's tracked minutes from the session list."""
        try:
            records = self._fetch_sessions()
        except ToolError as e:
            logger.warning("Today total poll failed", error=str(e), error_type=e.error_type.value)
            return self._today_minutes

        today = self._clock(None).date()
        minutes = sum(
            r.duration_minutes for r in records
            if isinstance(r, TrackingSession) and r.date == today
        )

        with self._lock:
            self._today_minutes = minutes
            tick = self._snapshot()

        self._publish(tick)
        return minutes

    def notify_stopped(self) -> SessionTick:
        """Reset to Idle right after a successful stop command."""
        with self._lock:
            self._generation += 1
            self._go_idle("stopped")
            tick = self._snapshot()
        self._publish(tick)
        return tick

    def notify_started(self) -> SessionTick:
        """Poll immediately after a successful start command."""
        with self._lock:
            self._generation += 1
        return self.poll_session()

    def _discard_stale(self, generation: int) -> SessionTick:
        logger.debug(
            "Discarding session poll overtaken by a start or stop",
            poll_generation=generation,
            current_generation=self._generation
        )
        return self._snapshot()

    def _observe(self, status: ActiveSession) -> None:
        elapsed = elapsed_seconds(status.start_time, self._clock(status.start_time))
        if elapsed < 0:
            logger.warning(
                "Session start time is in the future, staying idle",
                start_time=status.start_time.isoformat(),
                elapsed_seconds=elapsed
            )
            self._go_idle("negative_elapsed")
            return

        same = self._session is not None and _same_session(self._session, status)
        if same:
            elapsed = max(elapsed, self._elapsed)

        if self._state is MonitorState.IDLE:
            self._transition(MonitorState.TRACKING, "session_detected", status)
        elif not same:
            self._transition(MonitorState.TRACKING, "session_changed", status)

        self._session = status
        self._elapsed = elapsed

    def _go_idle(self, trigger: str) -> None:
        if self._state is MonitorState.TRACKING:
            self._transition(MonitorState.IDLE, trigger, self._session)
        self._session = None
        self._elapsed = 0.0

    def _transition(self, to_state: MonitorState, trigger: str, session: Optional[ActiveSession]) -> None:
        context = None
        if session is not None:
            context = {
                "project": session.project,
                "client": session.client_name,
                "start_time": session.start_time.isoformat(),
            }
        log_session_transition(logger, self._state.value, to_state.value, trigger, context)
        self._state = to_state

    def _snapshot(self) -> SessionTick:
        return SessionTick(
            state=self._state,
            session=self._session,
            elapsed_seconds=self._elapsed,
            today_minutes=self._today_minutes,
            polled_at=self._clock(None),
        )

    def _publish(self, tick: SessionTick) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(tick)
            except Exception as e:
                logger.warning("Session subscriber failed", error=str(e))
