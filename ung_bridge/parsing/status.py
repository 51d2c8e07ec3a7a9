"""
Line-oriented parsers for "Label: value" style output.

Used for the tracking status command, the dashboard summary and the
confirmation messages printed by mutations.
"""

import re
from typing import Optional

from dateutil import parser as date_parser

from ..errors import ParseError
from ..models import ActiveSession, DashboardMetrics, EntityType, NoSession, SessionStatus
from .fields import DEFAULT_CURRENCY, optional_text, parse_bool, parse_decimal, parse_int, parse_money

_KEY_VALUE = re.compile(r"^\s*([A-Za-z][\w #/()'-]*?)\s*:\s*(.*?)\s*$")
_CLIENT_ID_SUFFIX = re.compile(r"\s*\(ID:\s*\d+\)\s*$", re.IGNORECASE)
_NO_SESSION = re.compile(r"\bno (active )?(tracking )?session\b|\bnot tracking\b", re.IGNORECASE)
_CREATED_ID = re.compile(r"\bID:?\s*#?(\d+)", re.IGNORECASE)
_CONTRACT_COUNT = re.compile(r"(\d+)\s+(active\s+)?contracts?\b", re.IGNORECASE)
_COUNT = re.compile(r"\d+")

# Dashboard label -> (metric field, kind)
_DASHBOARD_LABELS = (
    ("Hourly Contracts", "hourly_revenue", "money"),
    ("Retainer Contracts", "retainer_revenue", "money"),
    ("Projected Hours", "projected_hours", "number"),
    ("Average Rate", "average_hourly_rate", "money"),
    ("Total Clients", "total_clients", "count"),
    ("Pending Invoices", "pending_invoices", "count"),
    ("Unpaid Amount", "unpaid_amount", "money"),
    ("Active Contracts", "active_contracts", "count"),
)


def parse_key_values(text: str) -> dict[str, str]:
    """
    Collect "Label: value" lines into a dict keyed by lowercased label.

    Only the first colon separates label and value, so timestamps in
    values survive intact. Later duplicates overwrite earlier ones.
    """
    values: dict[str, str] = {}
    for line in (text or "").splitlines():
        match = _KEY_VALUE.match(line)
        if match:
            values[match.group(1).strip().lower()] = match.group(2)
    return values


def parse_session_status(text: str) -> SessionStatus:
    """
    Parse the tracking status command into the session tagged union.

    Args:
        text: Output of the status command

    Returns:
        ActiveSession when a session is running, NoSession otherwise

    Raises:
        ParseError: If a session is reported but its start time is
            missing or unparseable
    """
    if not (text or "").strip() or _NO_SESSION.search(text):
        return NoSession()

    values = parse_key_values(text)
    project = optional_text(values.get("project"))
    started = values.get("started") or values.get("start") or values.get("start time")

    if project is None and started is None:
        raise ParseError(
            "Unrecognized session status output",
            entity_type=EntityType.TRACKING.value,
            raw_excerpt=text.strip()[:120],
        )

    if not started:
        raise ParseError(
            "Active session has no start time",
            entity_type=EntityType.TRACKING.value,
            raw_excerpt=text.strip()[:120],
        )

    try:
        start_time = date_parser.parse(started)
    except (ValueError, OverflowError) as e:
        raise ParseError(
            f"Unparseable session start time '{started}'",
            entity_type=EntityType.TRACKING.value,
            raw_excerpt=started,
        ) from e

    client = optional_text(values.get("client"))
    if client is not None:
        client = _CLIENT_ID_SUFFIX.sub("", client) or None

    billable = values.get("billable")
    session_id = values.get("id")

    return ActiveSession(
        project=project or "",
        client_name=client,
        start_time=start_time,
        session_id=parse_int(session_id) if session_id else None,
        billable=parse_bool(billable) if billable is not None else None,
        notes=optional_text(values.get("notes")),
    )


def _value_after_label(line: str, label: str) -> str:
    rest = line[line.index(label) + len(label):]
    if ":" in rest:
        return rest.split(":", 1)[1]
    return rest


def parse_dashboard(text: str) -> DashboardMetrics:
    """
    Parse the dashboard summary by matching known labels line by line.

    Unmatched labels leave their metric at 0. A "TOTAL ... N contracts"
    line supplies both total monthly revenue and the active contract count.
    """
    metrics: dict[str, object] = {}
    currency = DEFAULT_CURRENCY

    for line in (text or "").splitlines():
        if "Total Monthly Revenue" in line or line.strip().startswith("TOTAL"):
            label = "Total Monthly Revenue" if "Total Monthly Revenue" in line else "TOTAL"
            value = _value_after_label(line, label)
            amount, currency = parse_money(_CONTRACT_COUNT.sub("", value))
            metrics["total_monthly_revenue"] = amount
            contracts = _CONTRACT_COUNT.search(value)
            if contracts:
                metrics["active_contracts"] = int(contracts.group(1))
            continue

        for label, name, kind in _DASHBOARD_LABELS:
            if label not in line:
                continue
            value = _value_after_label(line, label)
            if kind == "money":
                metrics[name] = parse_money(value)[0]
            elif kind == "number":
                metrics[name] = parse_decimal(value)
            else:
                count = _COUNT.search(value)
                metrics[name] = int(count.group()) if count else 0
            break

    return DashboardMetrics(currency=currency, **metrics)  # type: ignore[arg-type]


def parse_created_id(text: str) -> Optional[int]:
    """Read the id a mutation reports, e.g. 'Client added successfully (ID: 7)'."""
    match = _CREATED_ID.search(text or "")
    if not match:
        return None
    return int(match.group(1))

