"""
Output parser module.

Converts the tool's human-readable tables and "Label: value" blocks, and
the remote API's JSON payloads, into typed records. All functions here
are pure: no state, no I/O.
"""

from .fields import (
    parse_amount,
    parse_bool,
    parse_date,
    parse_duration_minutes,
    parse_money,
    split_fields,
)
from .payloads import dashboard_from_payload, records_from_payload, session_from_payload
from .status import parse_created_id, parse_dashboard, parse_key_values, parse_session_status
from .tables import SCHEMAS, TableParseResult, TableSchema, parse, parse_contract_type, parse_table

__all__ = [
    # Tables
    "parse",
    "parse_table",
    "SCHEMAS",
    "TableSchema",
    "TableParseResult",
    "parse_contract_type",
    # Key/value output
    "parse_key_values",
    "parse_session_status",
    "parse_dashboard",
    "parse_created_id",
    # JSON payloads
    "records_from_payload",
    "session_from_payload",
    "dashboard_from_payload",
    # Fields
    "split_fields",
    "parse_amount",
    "parse_money",
    "parse_duration_minutes",
    "parse_date",
    "parse_bool",
]
