"""Schedulable polling task independent of any rendering loop."""

import threading
from typing import Any, Callable, Optional

from ..logging import get_monitor_logger


class PollingTask:
    """
    Runs an action every `interval` seconds on a daemon thread.

    A failing tick is logged and the schedule continues; the task only
    ends when stop() is called.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        action: Callable[[], Any],
        run_immediately: bool = True
    ):
        if interval <= 0:
            raise ValueError(f"Polling interval must be positive, got {interval}")

        self.name = name
        self.interval = interval
        self.action = action
        self.run_immediately = run_immediately
        self.tick_count = 0
        self.error_count = 0
        self.logger = get_monitor_logger(__name__).bind(task=name)

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start polling. Idempotent while running."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=f"poll-{self.name}", daemon=True)
        self._thread.start()
        self.logger.debug("Polling task started", interval=self.interval)

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Stop polling; the tick in progress, if any, completes."""
        self._stop_event.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        self.logger.debug("Polling task stopped", ticks=self.tick_count)

    def tick(self) -> None:
        """Run the action once."""
        self.tick_count += 1
        try:
            self.action()
        except Exception as e:
            self.error_count += 1
            self.logger.error("Polling tick failed", error=str(e), error_class=type(e).__name__)

    def _loop(self) -> None:
        if self.run_immediately:
            self.tick()
        while not self._stop_event.wait(self.interval):
            self.tick()
