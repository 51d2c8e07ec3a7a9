"""
Serialized command execution against the external tool.

All invocations, whether user initiated or issued by the session
monitor's timers, go through one CommandBus. A single worker thread
drains the queue so at most one invocation is in flight at a time.
"""

import itertools
import threading
import time
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..config.defaults import BusParams
from ..errors import ToolError, ToolTimeoutError, UnknownToolError, is_retryable
from ..logging import get_bus_logger, log_command_event


@dataclass(frozen=True)
class CommandOptions:
    """Per-command execution options."""
    timeout: float = 30.0
    max_retries: int = 2
    priority: bool = False        # Insert at the front of the queue
    label: Optional[str] = None   # Human-readable name for logs and status


@dataclass(frozen=True)
class BusStatus:
    """Point-in-time view of the queue."""
    queue_length: int
    processing: bool
    current_command: Optional[str] = None


@dataclass
class _Command:
    id: str
    operation: Callable[[], Any]
    options: CommandOptions
    future: Future = field(default_factory=Future)
    attempts: int = 0
    retries: int = 0

    @property
    def name(self) -> str:
        return self.options.label or self.id


class CommandBus:
    """
    FIFO command queue with a priority lane, per-attempt timeouts and
    front-of-queue retries for transient failures.
    """

    def __init__(
        self,
        default_timeout: float = 30.0,
        default_max_retries: int = 2,
        name: str = "ung-bus"
    ):
        self.name = name
        self.default_options = CommandOptions(timeout=default_timeout, max_retries=default_max_retries)
        self.logger = get_bus_logger(__name__).bind(bus=name)

        self._queue: deque[_Command] = deque()
        self._condition = threading.Condition()
        self._current: Optional[_Command] = None
        self._worker: Optional[threading.Thread] = None
        self._running = False
        self._closed = False
        self._ids = itertools.count(1)

    @classmethod
    def from_params(cls, params: BusParams, name: str = "ung-bus") -> "CommandBus":
        """Create a bus from configuration parameters."""
        return cls(
            default_timeout=params.timeout_seconds,
            default_max_retries=params.max_retries,
            name=name,
        )

    def options(self, **overrides: Any) -> CommandOptions:
        """Build options from the bus defaults plus overrides."""
        values = {
            "timeout": self.default_options.timeout,
            "max_retries": self.default_options.max_retries,
        }
        values.update(overrides)
        return CommandOptions(**values)

    def start(self) -> None:
        """Start the worker thread. Idempotent."""
        with self._condition:
            if self._closed:
                raise RuntimeError(f"Command bus {self.name} has been shut down")
            if self._running:
                return
            self._running = True
            self._worker = threading.Thread(target=self._worker_loop, name=self.name, daemon=True)
            self._worker.start()

        self.logger.debug("Command bus started")

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        """
        Stop accepting commands and stop the worker.

        Args:
            wait: Block until the worker has drained the queue and exited
            cancel_pending: Reject queued commands instead of draining them
        """
        if cancel_pending:
            self.clear()

        with self._condition:
            self._closed = True
            self._running = False
            self._condition.notify_all()
            worker = self._worker

        if wait and worker is not None and worker is not threading.current_thread():
            worker.join()

        self.logger.debug("Command bus stopped")

    def __enter__(self) -> "CommandBus":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)

    def enqueue(
        self,
        operation: Callable[[], Any],
        options: Optional[CommandOptions] = None
    ) -> "Future[Any]":
        """
        Queue an operation for serialized execution.

        Args:
            operation: Zero-argument callable performing one invocation
            options: Timeout/retry/priority options, bus defaults if None

        Returns:
            Future resolved with the operation's result, or with the
            original error once retries are exhausted
        """
        if options is None:
            options = self.default_options

        command = _Command(id=f"cmd-{next(self._ids)}", operation=operation, options=options)

        with self._condition:
            if self._closed:
                raise RuntimeError(f"Command bus {self.name} has been shut down")
            if options.priority:
                self._queue.appendleft(command)
            else:
                self._queue.append(command)
            queue_length = len(self._queue)
            self._condition.notify_all()

        log_command_event(
            self.logger, command.id, "enqueued", attempt=0,
            label=options.label, priority=options.priority, queue_length=queue_length
        )

        self.start()
        return command.future

    def run(self, operation: Callable[[], Any], options: Optional[CommandOptions] = None) -> Any:
        """Enqueue an operation and block until it completes."""
        return self.enqueue(operation, options).result()

    def status(self) -> BusStatus:
        """Get the queue length and the command in flight, if any."""
        with self._condition:
            current = self._current
            return BusStatus(
                queue_length=len(self._queue),
                processing=current is not None,
                current_command=current.name if current else None,
            )

    def clear(self) -> int:
        """
        Reject every queued command. The command in flight is unaffected.

        Returns:
            Number of commands rejected
        """
        with self._condition:
            pending = list(self._queue)
            self._queue.clear()

        for command in pending:
            if not command.future.done():
                command.future.set_exception(UnknownToolError("Queue was cleared"))

        if pending:
            self.logger.info("Command queue cleared", rejected=len(pending))
        return len(pending)

    def _worker_loop(self) -> None:
        while True:
            with self._condition:
                while not self._queue and self._running:
                    self._condition.wait()
                if not self._queue:
                    return
                command = self._queue.popleft()
                self._current = command

            try:
                self._execute(command)
            finally:
                with self._condition:
                    self._current = None
                    self._condition.notify_all()

    def _execute(self, command: _Command) -> None:
        if command.attempts == 0 and not command.future.set_running_or_notify_cancel():
            self.logger.debug("Skipping cancelled command", command_id=command.id)
            return

        command.attempts += 1
        log_command_event(self.logger, command.id, "started", command.attempts, label=command.options.label)

        start_time = time.monotonic()
        try:
            result = self._run_attempt(command)
        except BaseException as e:
            # Anything the operation raised is relayed to the caller through the future
            if is_retryable(e) and command.retries < command.options.max_retries:
                command.retries += 1
                log_command_event(
                    self.logger, command.id, "retrying", command.attempts,
                    label=command.options.label, error=str(e), retry=command.retries
                )
                with self._condition:
                    self._queue.appendleft(command)
                    self._condition.notify_all()
                return

            if isinstance(e, ToolError):
                e.attempts = command.attempts
            log_command_event(
                self.logger, command.id, "failed", command.attempts,
                label=command.options.label, error=str(e), error_class=type(e).__name__
            )
            command.future.set_exception(e)
            return

        duration_ms = int((time.monotonic() - start_time) * 1000)
        log_command_event(
            self.logger, command.id, "succeeded", command.attempts,
            label=command.options.label, duration_ms=duration_ms
        )
        command.future.set_result(result)

    def _run_attempt(self, command: _Command) -> Any:
        """Run one attempt on a helper thread; abandon it on timeout."""
        outcome: dict[str, Any] = {}
        finished = threading.Event()

        def target() -> None:
            try:
                outcome["result"] = command.operation()
            except BaseException as e:
                outcome["error"] = e
            finally:
                finished.set()

        attempt_thread = threading.Thread(
            target=target,
            name=f"{self.name}-{command.id}-{command.attempts}",
            daemon=True,
        )
        attempt_thread.start()

        if not finished.wait(command.options.timeout):
            raise ToolTimeoutError(
                f"{command.name} timed out after {command.options.timeout}s",
                timeout_seconds=command.options.timeout,
                context={"command_id": command.id, "attempt": command.attempts},
            )

        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]
