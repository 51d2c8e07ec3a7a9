"""
Mapping of the remote API's JSON payloads onto domain records.

The HTTP variant returns structured data, but it follows the same
defaulting and skip rules as the text tables: a record without an
integer id is dropped, unparseable numbers become 0, unknown enum
values drop the record.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Optional, Union

from dateutil import parser as date_parser

from ..errors import ParseError
from ..models import (
    ActiveSession,
    Client,
    Contract,
    DashboardMetrics,
    EntityType,
    Expense,
    Invoice,
    InvoiceStatus,
    NoSession,
    Record,
    SessionStatus,
    TrackingSession,
)
from .fields import DEFAULT_CURRENCY, optional_text, parse_date
from .tables import parse_contract_type


def _first(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
    if not amount.is_finite() or amount < 0:
        return Decimal("0")
    return amount


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return optional_text(str(value))


def _nested_name(item: dict[str, Any], flat_key: str, nested_key: str) -> Optional[str]:
    name = _text(item.get(flat_key))
    if name is None and isinstance(item.get(nested_key), dict):
        name = _text(item[nested_key].get("name"))
    return name


def _record_id(item: dict[str, Any]) -> Optional[int]:
    value = item.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _invoice(row_id: int, item: dict[str, Any]) -> Optional[Invoice]:
    try:
        status = InvoiceStatus(str(item.get("status", "")).lower())
    except ValueError:
        return None
    return Invoice(
        id=row_id,
        number=_text(_first(item, "invoice_num", "number")) or "",
        amount=_decimal(item.get("amount")),
        currency=_text(item.get("currency")) or DEFAULT_CURRENCY,
        status=status,
        client_name=_nested_name(item, "client_name", "client") or "",
        due_date=parse_date(str(item.get("due_date") or "")),
    )


def _client(row_id: int, item: dict[str, Any]) -> Optional[Client]:
    name = _text(item.get("name"))
    if name is None:
        return None
    return Client(
        id=row_id,
        name=name,
        email=_text(item.get("email")),
        address=_text(item.get("address")),
        tax_id=_text(item.get("tax_id")),
    )


def _contract(row_id: int, item: dict[str, Any]) -> Optional[Contract]:
    contract_type = parse_contract_type(str(_first(item, "contract_type", "type") or ""))
    if contract_type is None:
        return None
    return Contract(
        id=row_id,
        number=_text(_first(item, "contract_num", "number")) or "",
        name=_text(item.get("name")) or "",
        client_name=_nested_name(item, "client_name", "client") or "",
        type=contract_type,
        rate=_decimal(_first(item, "rate", "hourly_rate", "fixed_price", "retainer_amount")),
        currency=_text(item.get("currency")) or DEFAULT_CURRENCY,
        active=bool(item.get("active", True)),
    )


def _expense(row_id: int, item: dict[str, Any]) -> Optional[Expense]:
    return Expense(
        id=row_id,
        date=parse_date(str(item.get("date") or "")),
        description=_text(item.get("description")) or "",
        category=_text(item.get("category")) or "other",
        vendor=_text(item.get("vendor")),
        amount=_decimal(item.get("amount")),
        currency=_text(item.get("currency")) or DEFAULT_CURRENCY,
    )


def _duration_minutes(item: dict[str, Any]) -> int:
    if item.get("duration_minutes") is not None:
        minutes = _decimal(item["duration_minutes"])
    elif item.get("duration") is not None:
        # API durations are in seconds
        minutes = _decimal(item["duration"]) / 60
    elif item.get("hours") is not None:
        minutes = _decimal(item["hours"]) * 60
    else:
        minutes = Decimal("0")
    return int(minutes.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _tracking(row_id: int, item: dict[str, Any]) -> Optional[TrackingSession]:
    return TrackingSession(
        id=row_id,
        project=_text(_first(item, "project_name", "project")) or "",
        client_name=_nested_name(item, "client_name", "client"),
        date=parse_date(str(item.get("start_time") or item.get("date") or "")),
        duration_minutes=_duration_minutes(item),
        billable=bool(item.get("billable", False)),
    )


_BUILDERS: dict[EntityType, Callable[[int, dict[str, Any]], Optional[Record]]] = {
    EntityType.INVOICE: _invoice,
    EntityType.CLIENT: _client,
    EntityType.CONTRACT: _contract,
    EntityType.EXPENSE: _expense,
    EntityType.TRACKING: _tracking,
}


def records_from_payload(entity_type: Union[EntityType, str], payload: Any) -> list[Record]:
    """
    Map a decoded list payload onto records.

    Args:
        entity_type: Which record type the payload holds
        payload: The envelope's data member: a list of objects, or null

    Returns:
        Records in payload order, minus entries that could not be mapped

    Raises:
        ParseError: If the payload is not a list
    """
    entity_type = EntityType(entity_type)
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ParseError(
            f"Expected a list of {entity_type.value} objects",
            entity_type=entity_type.value,
            raw_excerpt=repr(payload)[:120],
        )

    build = _BUILDERS[entity_type]
    records = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        row_id = _record_id(item)
        if row_id is None:
            continue
        record = build(row_id, item)
        if record is not None:
            records.append(record)
    return records


def session_from_payload(payload: Any) -> SessionStatus:
    """Map the active-session endpoint's data (null when idle)."""
    if not payload:
        return NoSession()
    if not isinstance(payload, dict):
        raise ParseError("Expected a session object", entity_type=EntityType.TRACKING.value,
                         raw_excerpt=repr(payload)[:120])

    started = payload.get("start_time")
    try:
        start_time = date_parser.isoparse(str(started))
    except (ValueError, OverflowError) as e:
        raise ParseError(
            f"Unparseable session start time '{started}'",
            entity_type=EntityType.TRACKING.value,
            raw_excerpt=str(started),
        ) from e

    return ActiveSession(
        project=_text(_first(payload, "project_name", "project")) or "",
        client_name=_nested_name(payload, "client_name", "client"),
        start_time=start_time,
        session_id=_record_id(payload),
        billable=payload.get("billable"),
        notes=_text(payload.get("notes")),
    )


def dashboard_from_payload(payload: Any) -> DashboardMetrics:
    """Map the revenue projection object onto dashboard metrics."""
    if not isinstance(payload, dict):
        return DashboardMetrics()

    def count(key: str) -> int:
        value = payload.get(key)
        return value if isinstance(value, int) and not isinstance(value, bool) and value >= 0 else 0

    return DashboardMetrics(
        total_monthly_revenue=_decimal(payload.get("total_monthly_revenue")),
        hourly_revenue=_decimal(_first(payload, "hourly_contracts_revenue", "hourly_revenue")),
        retainer_revenue=_decimal(payload.get("retainer_revenue")),
        projected_hours=_decimal(payload.get("projected_hours")),
        average_hourly_rate=_decimal(payload.get("average_hourly_rate")),
        active_contracts=count("active_contracts"),
        total_clients=count("total_clients"),
        pending_invoices=count("pending_invoices"),
        unpaid_amount=_decimal(payload.get("unpaid_amount")),
        currency=_text(payload.get("currency")) or DEFAULT_CURRENCY,
    )
