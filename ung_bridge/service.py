"""
UI-facing facade over the mediation layer.

Coordinates the pipeline for every client surface:
Command Bus → Backend (CLI or HTTP) → Parser → Entity Cache → View Model,
with the Live Session Monitor feeding the same bus on its own schedule.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .bus import BusStatus, CommandBus
from .cache import CacheKey, EntityCache
from .client import (
    CliBackend,
    CliRunner,
    HttpBackend,
    HttpRunner,
    MutationOutcome,
    MutationRequest,
    build_mutation,
    mutation_spec,
)
from .config import BridgeSettings, load_settings
from .errors import MutationCancelled, ToolError
from .logging import configure_logging, get_logger
from .models import (
    ActiveSession,
    Client,
    Contract,
    DashboardMetrics,
    EntityType,
    Expense,
    Invoice,
    Record,
    SessionStatus,
    TrackingSession,
)
from .monitor import SessionMonitor, SessionTick
from .views import (
    ViewTree,
    build_client_view,
    build_contract_view,
    build_dashboard_view,
    build_expense_view,
    build_invoice_view,
    build_tracking_view,
)

Backend = Union[CliBackend, HttpBackend]
ConfirmCallback = Callable[[MutationRequest], bool]
NotifySink = Callable[[str], None]

_SUCCESS_MESSAGES = {
    (EntityType.CLIENT, "add"): "Client {name} added successfully",
    (EntityType.CLIENT, "delete"): "Client deleted",
    (EntityType.CONTRACT, "delete"): "Contract deleted",
    (EntityType.INVOICE, "new"): "Invoice created successfully",
    (EntityType.INVOICE, "mark"): "Invoice marked as {status}",
    (EntityType.INVOICE, "delete"): "Invoice deleted",
    (EntityType.EXPENSE, "add"): "Expense logged successfully",
    (EntityType.EXPENSE, "delete"): "Expense deleted",
    (EntityType.TRACKING, "start"): "Time tracking started",
    (EntityType.TRACKING, "stop"): "Time tracking stopped",
    (EntityType.TRACKING, "log"): "Time logged successfully",
}


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a successful mutation."""
    request: MutationRequest
    output: str
    created_id: Optional[int]
    message: str


def canonical_scope(filters: Optional[dict[str, Any]]) -> Optional[str]:
    """Stable cache scope for a filter set; None when unfiltered."""
    if not filters:
        return None
    pairs = sorted((k, str(v)) for k, v in filters.items() if v is not None)
    if not pairs:
        return None
    return "&".join(f"{k}={v}" for k, v in pairs)


class BridgeService:
    """
    Operations exposed to thin client surfaces.

    All collaborators are injected; create() wires the defaults from
    settings. There are no module-level singletons.
    """

    def __init__(
        self,
        backend: Backend,
        bus: CommandBus,
        cache: EntityCache,
        monitor: Optional[SessionMonitor] = None,
        settings: Optional[BridgeSettings] = None,
        confirm: Optional[ConfirmCallback] = None,
        notify: Optional[NotifySink] = None
    ) -> None:
        self.settings = settings or BridgeSettings()
        self.backend = backend
        self.bus = bus
        self.cache = cache
        self.confirm = confirm
        self.notify = notify
        self.logger = get_logger(__name__).bind(backend=getattr(backend, "name", type(backend).__name__))

        if monitor is None:
            monitor = SessionMonitor.from_params(
                self.settings.monitor,
                fetch_status=self._fetch_status,
                fetch_sessions=lambda: self.list_entities(EntityType.TRACKING),
            )
        self.monitor = monitor

    @classmethod
    def create(
        cls,
        settings: Optional[BridgeSettings] = None,
        confirm: Optional[ConfirmCallback] = None,
        notify: Optional[NotifySink] = None
    ) -> "BridgeService":
        """Build a service with the default collaborators for the settings."""
        if settings is None:
            settings = load_settings()

        if settings.logging.configure:
            configure_logging(
                level=settings.logging.level,
                format_json=settings.logging.format_json,
                include_timestamp=settings.logging.include_timestamp,
                include_caller=settings.logging.include_caller,
            )

        backend: Backend
        if settings.backend == "http":
            backend = HttpBackend(HttpRunner.from_params(settings.http))
        else:
            backend = CliBackend(CliRunner.from_params(settings.tool))

        return cls(
            backend=backend,
            bus=CommandBus.from_params(settings.bus),
            cache=EntityCache.from_params(settings.cache),
            settings=settings,
            confirm=confirm,
            notify=notify,
        )

    def __enter__(self) -> "BridgeService":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def start(self) -> None:
        """Start the bus worker and the session monitor's polling."""
        self.bus.start()
        self.monitor.start()
        self.logger.info("Bridge service started")

    def stop(self) -> None:
        """Stop the session monitor's polling."""
        self.monitor.stop()

    def close(self) -> None:
        """Stop polling and shut the bus down."""
        self.monitor.stop()
        self.bus.shutdown(wait=True, cancel_pending=True)
        self.logger.info("Bridge service closed")

    def status(self) -> BusStatus:
        return self.bus.status()

    def subscribe(self, callback: Callable[[SessionTick], None]) -> Callable[[], None]:
        """Receive a SessionTick after every monitor poll."""
        return self.monitor.subscribe(callback)

    def list_entities(
        self,
        entity_type: Union[EntityType, str],
        filters: Optional[dict[str, Any]] = None,
        ttl: Optional[float] = None
    ) -> list[Record]:
        """
        Get records of one type, from cache when fresh.

        Args:
            entity_type: Which records to list
            filters: Optional filter flags; each distinct set is cached separately
            ttl: Per-call cache TTL in seconds

        Returns:
            Parsed records

        Raises:
            ToolError: When the fetch fails (failures are never cached)
        """
        entity_type = EntityType(entity_type)
        key = CacheKey(entity_type, canonical_scope(filters))

        def fetch() -> list[Record]:
            return self.bus.run(
                lambda: self.backend.list_records(entity_type, filters),
                self.bus.options(label=f"{entity_type.value} ls"),
            )

        return self.cache.get_or_fetch(key, fetch, ttl)

    def dashboard(self, ttl: Optional[float] = None) -> DashboardMetrics:
        """Get the cached dashboard snapshot."""
        records = self.list_entities(EntityType.DASHBOARD, ttl=ttl)
        return records[0] if records else DashboardMetrics()

    def mutate(
        self,
        entity_type: Union[EntityType, str],
        operation: str,
        params: Optional[dict[str, Any]] = None,
        success_message: Optional[str] = None
    ) -> MutationResult:
        """
        Run a state-changing command.

        Parameters are validated locally first; invalid input raises
        ValidationError without reaching the tool. Destructive operations
        must be approved by the confirm callback. On success the affected
        entity type and the dashboard are invalidated and the success
        message is sent to the notify sink.

        Raises:
            ValidationError: Invalid or unsupported mutation
            MutationCancelled: A destructive operation was not confirmed
            ToolError: The tool rejected or failed the command
        """
        spec = mutation_spec(entity_type, operation)
        request = build_mutation(spec.entity_type, spec.operation, params)

        if spec.destructive and (self.confirm is None or not self.confirm(request)):
            self.logger.info("Mutation cancelled", mutation=request.label)
            raise MutationCancelled(f"{request.label} was not confirmed")

        try:
            outcome: MutationOutcome = self.bus.run(
                lambda: self.backend.execute(request),
                self.bus.options(priority=spec.priority, label=request.label),
            )
        except ToolError as e:
            self.logger.warning(
                "Mutation failed",
                mutation=request.label,
                error_type=e.error_type.value,
                attempts=e.attempts,
                error=str(e)
            )
            raise

        self.cache.refresh(request.entity_type)
        self.cache.refresh(EntityType.DASHBOARD)

        if request.entity_type is EntityType.TRACKING:
            if request.operation == "stop":
                self.monitor.notify_stopped()
            elif request.operation == "start":
                self.monitor.notify_started()

        message = success_message or self._default_message(request)
        if self.notify is not None:
            self.notify(message)

        self.logger.info("Mutation succeeded", mutation=request.label, created_id=outcome.created_id)
        return MutationResult(
            request=request,
            output=outcome.output,
            created_id=outcome.created_id,
            message=message,
        )

    def get_active_session(self) -> Optional[ActiveSession]:
        """Fetch the running session, bypassing the cache."""
        status = self._fetch_status()
        return status if isinstance(status, ActiveSession) else None

    def refresh(self, entity_type: Optional[Union[EntityType, str]] = None) -> int:
        """Invalidate cached records of one type, or all of them."""
        return self.cache.refresh(entity_type)

    def view(self, entity_type: Union[EntityType, str]) -> ViewTree:
        """Compose the presentation tree for one entity type."""
        entity_type = EntityType(entity_type)
        limit = self.settings.views.recent_sessions_limit

        if entity_type is EntityType.INVOICE:
            return build_invoice_view(self._typed(entity_type, Invoice))
        if entity_type is EntityType.CONTRACT:
            return build_contract_view(self._typed(entity_type, Contract))
        if entity_type is EntityType.EXPENSE:
            return build_expense_view(self._typed(entity_type, Expense))
        if entity_type is EntityType.CLIENT:
            return build_client_view(self._typed(entity_type, Client))

        tick = self._current_tick()
        if entity_type is EntityType.TRACKING:
            return build_tracking_view(
                self._typed(entity_type, TrackingSession),
                active=tick.session,
                today=tick.polled_at.date(),
                now=tick.polled_at,
                elapsed=tick.elapsed_seconds if tick.session is not None else None,
                recent_limit=limit,
            )
        return build_dashboard_view(
            self.dashboard(),
            active=tick.session,
            elapsed=tick.elapsed_seconds if tick.session is not None else None,
        )

    def _typed(self, entity_type: EntityType, record_type: type) -> list[Any]:
        return [r for r in self.list_entities(entity_type) if isinstance(r, record_type)]

    def _current_tick(self) -> SessionTick:
        if self.monitor.session_task.running:
            return self.monitor.snapshot()
        return self.monitor.poll_session()

    def _fetch_status(self) -> SessionStatus:
        return self.bus.run(self.backend.session_status, self.bus.options(label="track now"))

    def _default_message(self, request: MutationRequest) -> str:
        template = _SUCCESS_MESSAGES.get((request.entity_type, request.operation), "{label} succeeded")
        values = {"label": request.label, **request.params}
        try:
            return template.format(**values)
        except KeyError:
            return f"{request.label} succeeded"
