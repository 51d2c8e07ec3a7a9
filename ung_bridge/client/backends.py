"""
Backends pair a transport with the matching decoder.

CliBackend runs the local executable and parses its text tables;
HttpBackend calls the remote API and maps its JSON. Both expose the
same four methods so the service never cares which one it holds.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from ..errors import NotFoundError, ParseError
from ..logging import get_logger
from ..models import DashboardMetrics, EntityType, NoSession, Record, SessionStatus
from ..parsing import (
    dashboard_from_payload,
    parse_created_id,
    parse_dashboard,
    parse_session_status,
    parse_table,
    records_from_payload,
    session_from_payload,
)
from .commands import MutationRequest, UngClient
from .runners import CliRunner, HttpRunner

# Operations whose output reports the id of a new record
_CREATING_OPERATIONS = frozenset({"add", "new", "start", "log"})


@dataclass(frozen=True)
class MutationOutcome:
    """What the tool reported for a successful mutation."""
    output: str
    created_id: Optional[int] = None


class CliBackend:
    """Local executable plus text parsing."""

    name = "cli"

    def __init__(self, runner: CliRunner, client: Optional[UngClient] = None):
        self.runner = runner
        self.client = client or UngClient()
        self.logger = get_logger(__name__).bind(backend=self.name)

    def list_records(
        self,
        entity_type: Union[EntityType, str],
        filters: Optional[dict[str, Any]] = None
    ) -> list[Record]:
        """Run a list command and parse its table."""
        entity_type = EntityType(entity_type)
        if entity_type is EntityType.DASHBOARD:
            return [self.dashboard()]

        output = self.runner.run(self.client.list_args(entity_type, filters))
        result = parse_table(entity_type, output)

        if result.skipped:
            self.logger.warning(
                "Skipped unparseable rows",
                entity_type=entity_type.value,
                skipped=len(result.skipped),
                first=result.skipped[0][:80]
            )
        return result.records

    def session_status(self) -> SessionStatus:
        """Fetch the active tracking session."""
        return parse_session_status(self.runner.run(self.client.status_args()))

    def dashboard(self) -> DashboardMetrics:
        """Fetch the revenue dashboard."""
        return parse_dashboard(self.runner.run(self.client.dashboard_args()))

    def execute(self, request: MutationRequest) -> MutationOutcome:
        """Run a validated mutation."""
        output = self.runner.run(self.client.mutation_args(request)).strip()
        created_id = parse_created_id(output) if request.operation in _CREATING_OPERATIONS else None
        return MutationOutcome(output=output, created_id=created_id)


_RESOURCES = {
    EntityType.INVOICE: "invoices",
    EntityType.CLIENT: "clients",
    EntityType.CONTRACT: "contracts",
    EntityType.EXPENSE: "expenses",
    EntityType.TRACKING: "tracking",
}

_BODY_KEYS = {
    "project": "project_name",
    "contract": "contract_id",
}


def _request_body(params: dict[str, Any]) -> dict[str, Any]:
    body = {}
    for name, value in params.items():
        if name == "client":
            name = "client_id" if isinstance(value, int) else "client_name"
        body[_BODY_KEYS.get(name, name)] = value
    return body


class HttpBackend:
    """Remote API plus JSON mapping."""

    name = "http"

    def __init__(self, runner: HttpRunner):
        self.runner = runner
        self.logger = get_logger(__name__).bind(backend=self.name)

    def list_records(
        self,
        entity_type: Union[EntityType, str],
        filters: Optional[dict[str, Any]] = None
    ) -> list[Record]:
        """Fetch a collection endpoint and map its objects."""
        entity_type = EntityType(entity_type)
        if entity_type is EntityType.DASHBOARD:
            return [self.dashboard()]

        payload = self.runner.request("GET", f"/{_RESOURCES[entity_type]}", query=filters)
        records = records_from_payload(entity_type, payload)

        if isinstance(payload, list) and len(records) < len(payload):
            self.logger.warning(
                "Skipped unmappable records",
                entity_type=entity_type.value,
                skipped=len(payload) - len(records)
            )
        return records

    def session_status(self) -> SessionStatus:
        """Fetch the active tracking session (null data when idle)."""
        return session_from_payload(self.runner.request("GET", "/tracking/active"))

    def dashboard(self) -> DashboardMetrics:
        """Fetch the revenue projection."""
        return dashboard_from_payload(self.runner.request("GET", "/dashboard/revenue"))

    def execute(self, request: MutationRequest) -> MutationOutcome:
        """Route a validated mutation onto its endpoint."""
        method, path, body = self._route(request)
        data = self.runner.request(method, path, body)

        created_id = None
        if request.operation in _CREATING_OPERATIONS and isinstance(data, dict):
            value = data.get("id")
            if isinstance(value, int) and not isinstance(value, bool):
                created_id = value

        output = f"{request.label} succeeded"
        if created_id is not None:
            output += f" (ID: {created_id})"
        return MutationOutcome(output=output, created_id=created_id)

    def _route(self, request: MutationRequest) -> tuple[str, str, Optional[dict[str, Any]]]:
        resource = _RESOURCES[request.entity_type]
        params = request.params

        if request.operation == "delete":
            return "DELETE", f"/{resource}/{params['id']}", None
        if request.operation == "mark":
            return "PATCH", f"/{resource}/{params['id']}/status", {"status": params["status"]}
        if request.operation == "start":
            return "POST", f"/{resource}/start", _request_body(params)
        if request.operation == "stop":
            session = self.session_status()
            if isinstance(session, NoSession):
                raise NotFoundError("No active tracking session")
            if session.session_id is None:
                raise ParseError("Active session has no id", entity_type=EntityType.TRACKING.value)
            return "POST", f"/{resource}/{session.session_id}/stop", None

        return "POST", f"/{resource}", _request_body(params)
