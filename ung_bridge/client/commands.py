"""
Command catalog for the ung tool.

Describes every list and mutation command the bridge issues, validates
mutation parameters locally (invalid input never reaches the tool) and
builds the CLI argument vectors.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Union

from dateutil import parser as date_parser

from ..errors import ValidationError
from ..models import EntityType, InvoiceStatus

# CLI subcommand per entity type
ENTITY_COMMANDS = {
    EntityType.INVOICE: "invoice",
    EntityType.CLIENT: "client",
    EntityType.CONTRACT: "contract",
    EntityType.EXPENSE: "expense",
    EntityType.TRACKING: "track",
}

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_CURRENCY = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class MutationRequest:
    """A validated state-changing command."""
    entity_type: EntityType
    operation: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"{self.entity_type.value} {self.operation}"


@dataclass(frozen=True)
class MutationSpec:
    """Local rules for one mutation."""
    entity_type: EntityType
    operation: str
    validate: Callable[[dict[str, Any]], dict[str, Any]]
    destructive: bool = False
    priority: bool = False


def _require_text(params: dict[str, Any], name: str) -> str:
    value = params.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required", field=name, value=value)
    return value.strip()


def _optional_text(params: dict[str, Any], name: str) -> Optional[str]:
    value = params.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be text", field=name, value=value)
    return value.strip() or None


def _require_id(params: dict[str, Any], name: str = "id") -> int:
    value = params.get(name)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer", field=name, value=value)
    return value


def _require_positive_amount(params: dict[str, Any], name: str) -> Decimal:
    value = params.get(name)
    try:
        amount = Decimal(str(value)) if value is not None and not isinstance(value, bool) else None
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{name} must be a positive number", field=name, value=value)
    return amount


def _optional_currency(params: dict[str, Any]) -> Optional[str]:
    value = _optional_text(params, "currency")
    if value is None:
        return None
    value = value.upper()
    if not _CURRENCY.match(value):
        raise ValidationError("currency must be a 3-letter code", field="currency", value=value)
    return value


def _optional_date(params: dict[str, Any], name: str) -> Optional[str]:
    value = _optional_text(params, name)
    if value is None:
        return None
    try:
        return date_parser.isoparse(value).date().isoformat()
    except ValueError as e:
        raise ValidationError(f"{name} must be a YYYY-MM-DD date", field=name, value=value) from e


def _optional_bool(params: dict[str, Any], name: str) -> Optional[bool]:
    value = params.get(name)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false", field=name, value=value)
    return value


def _client_reference(params: dict[str, Any], required: bool) -> Optional[Union[int, str]]:
    """Clients are referenced by id or by name."""
    value = params.get("client")
    if isinstance(value, bool):
        raise ValidationError("client must be an id or a name", field="client", value=value)
    if isinstance(value, int):
        return _require_id(params, "client")
    if isinstance(value, str) and value.strip():
        return value.strip()
    if required:
        raise ValidationError("client is required", field="client", value=value)
    return None


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _validate_delete(params: dict[str, Any]) -> dict[str, Any]:
    return {"id": _require_id(params)}


def _validate_client_add(params: dict[str, Any]) -> dict[str, Any]:
    name = _require_text(params, "name")
    email = _require_text(params, "email")
    if not _EMAIL.match(email):
        raise ValidationError("email is not a valid address", field="email", value=email)
    return _compact({
        "name": name,
        "email": email,
        "address": _optional_text(params, "address"),
        "tax_id": _optional_text(params, "tax_id"),
    })


def _validate_invoice_new(params: dict[str, Any]) -> dict[str, Any]:
    return _compact({
        "client": _client_reference(params, required=True),
        "amount": _require_positive_amount(params, "amount"),
        "currency": _optional_currency(params),
        "due_date": _optional_date(params, "due_date"),
        "description": _optional_text(params, "description"),
    })


def _validate_invoice_mark(params: dict[str, Any]) -> dict[str, Any]:
    status = params.get("status")
    try:
        status = InvoiceStatus(str(status).lower())
    except ValueError as e:
        raise ValidationError(
            f"status must be one of {', '.join(s.value for s in InvoiceStatus)}",
            field="status",
            value=params.get("status"),
        ) from e
    return {"id": _require_id(params), "status": status.value}


def _validate_expense_add(params: dict[str, Any]) -> dict[str, Any]:
    return _compact({
        "description": _require_text(params, "description"),
        "amount": _require_positive_amount(params, "amount"),
        "currency": _optional_currency(params),
        "category": _optional_text(params, "category"),
        "vendor": _optional_text(params, "vendor"),
        "date": _optional_date(params, "date"),
    })


def _validate_tracking_start(params: dict[str, Any]) -> dict[str, Any]:
    project = _optional_text(params, "project")
    client = _client_reference(params, required=False)
    if project is None and client is None:
        raise ValidationError("project or client is required", field="project", value=None)
    return _compact({
        "project": project,
        "client": client,
        "billable": _optional_bool(params, "billable"),
        "notes": _optional_text(params, "notes"),
    })


def _validate_tracking_stop(params: dict[str, Any]) -> dict[str, Any]:
    return {}


def _validate_tracking_log(params: dict[str, Any]) -> dict[str, Any]:
    contract = params.get("contract")
    client = _client_reference(params, required=False)
    if contract is None and client is None:
        raise ValidationError("contract or client is required", field="contract", value=None)
    return _compact({
        "hours": _require_positive_amount(params, "hours"),
        "contract": _require_id(params, "contract") if contract is not None else None,
        "client": client,
        "project": _optional_text(params, "project"),
        "notes": _optional_text(params, "notes"),
    })


MUTATIONS: dict[tuple[EntityType, str], MutationSpec] = {
    (spec.entity_type, spec.operation): spec
    for spec in (
        MutationSpec(EntityType.CLIENT, "add", _validate_client_add),
        MutationSpec(EntityType.CLIENT, "delete", _validate_delete, destructive=True),
        MutationSpec(EntityType.CONTRACT, "delete", _validate_delete, destructive=True),
        MutationSpec(EntityType.INVOICE, "new", _validate_invoice_new),
        MutationSpec(EntityType.INVOICE, "mark", _validate_invoice_mark),
        MutationSpec(EntityType.INVOICE, "delete", _validate_delete, destructive=True),
        MutationSpec(EntityType.EXPENSE, "add", _validate_expense_add),
        MutationSpec(EntityType.EXPENSE, "delete", _validate_delete, destructive=True),
        MutationSpec(EntityType.TRACKING, "start", _validate_tracking_start, priority=True),
        MutationSpec(EntityType.TRACKING, "stop", _validate_tracking_stop, priority=True),
        MutationSpec(EntityType.TRACKING, "log", _validate_tracking_log),
    )
}


def mutation_spec(entity_type: Union[EntityType, str], operation: str) -> MutationSpec:
    """Look up the rules for a mutation, rejecting unsupported ones."""
    try:
        entity_type = EntityType(entity_type)
    except ValueError as e:
        raise ValidationError(f"Unknown entity type {entity_type!r}", field="entity_type",
                              value=entity_type) from e

    spec = MUTATIONS.get((entity_type, operation))
    if spec is None:
        raise ValidationError(
            f"Unsupported operation {operation!r} for {entity_type.value}",
            field="operation",
            value=operation,
        )
    return spec


def build_mutation(
    entity_type: Union[EntityType, str],
    operation: str,
    params: Optional[dict[str, Any]] = None
) -> MutationRequest:
    """
    Validate caller input and produce a mutation request.

    Raises:
        ValidationError: On unsupported operations or invalid parameters
    """
    spec = mutation_spec(entity_type, operation)
    return MutationRequest(spec.entity_type, spec.operation, spec.validate(dict(params or {})))


def _flag(name: str) -> str:
    return "--" + name.replace("_", "-")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class UngClient:
    """Builds argument vectors for the ung CLI."""

    def list_args(
        self,
        entity_type: Union[EntityType, str],
        filters: Optional[dict[str, Any]] = None
    ) -> list[str]:
        """Arguments for a list command, filters become --flag value pairs."""
        entity_type = EntityType(entity_type)
        if entity_type is EntityType.DASHBOARD:
            return self.dashboard_args()

        args = [ENTITY_COMMANDS[entity_type], "ls"]
        for name, value in sorted((filters or {}).items()):
            if value is None or value is False:
                continue
            args.append(_flag(name))
            if value is not True:
                args.append(_format_value(value))
        return args

    def status_args(self) -> list[str]:
        """Arguments for the active tracking session status."""
        return ["track", "now"]

    def dashboard_args(self) -> list[str]:
        """Arguments for the revenue dashboard summary."""
        return ["dashboard"]

    def mutation_args(self, request: MutationRequest) -> list[str]:
        """Arguments for a validated mutation."""
        command = ENTITY_COMMANDS[request.entity_type]
        params = request.params

        if request.operation == "delete":
            return [command, "delete", str(params["id"])]
        if request.operation == "mark":
            return [command, "mark", str(params["id"]), "--status", params["status"]]

        args = [command, request.operation]
        for name, value in params.items():
            if name == "client" and isinstance(value, str):
                name = "client_name" if request.entity_type is EntityType.INVOICE else "client"
            if name == "amount" and request.entity_type is EntityType.INVOICE:
                name = "price"
            if name == "due_date":
                name = "due"
            args.extend([_flag(name), _format_value(value)])
        return args
