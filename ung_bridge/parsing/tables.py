"""
Positional table parsers for the tool's list commands.

Each entity type has a schema: the minimum number of fields a data row
must carry and a row builder that maps the positional fields onto a
record. Row-level problems drop the row; only an unrecognized header is
a batch-level failure.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from ..errors import ParseError
from ..models import (
    Client,
    Contract,
    ContractType,
    EntityType,
    Expense,
    Invoice,
    InvoiceStatus,
    Record,
    TrackingSession,
)
from .fields import (
    is_empty_message,
    is_rule_line,
    is_summary_line,
    optional_text,
    parse_bool,
    parse_date,
    parse_duration_minutes,
    parse_int,
    parse_money,
    split_fields,
)
from .status import parse_dashboard

RowBuilder = Callable[[int, list[str]], Optional[Record]]

_CONTRACT_TYPE_ALIASES = {
    "fixed_price": ContractType.FIXED,
    "fixed-price": ContractType.FIXED,
    "fixed price": ContractType.FIXED,
}


@dataclass(frozen=True)
class TableSchema:
    """Positional column contract for one entity type."""
    entity_type: EntityType
    columns: tuple[str, ...]
    min_fields: int
    build_row: RowBuilder


@dataclass
class TableParseResult:
    """Records plus the raw lines that were dropped."""
    records: list[Record] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _invoice_row(row_id: int, fields: list[str]) -> Optional[Invoice]:
    try:
        status = InvoiceStatus(fields[3].strip().lower())
    except ValueError:
        return None

    amount, currency = parse_money(fields[2])
    return Invoice(
        id=row_id,
        number=fields[1],
        amount=amount,
        currency=currency,
        status=status,
        client_name=fields[4],
        due_date=parse_date(fields[5]),
    )


def _client_row(row_id: int, fields: list[str]) -> Optional[Client]:
    name = fields[1].strip()
    if not name:
        return None

    def column(index: int) -> Optional[str]:
        return optional_text(fields[index]) if len(fields) > index else None

    return Client(
        id=row_id,
        name=name,
        email=column(2),
        address=column(3),
        tax_id=column(4),
    )


def parse_contract_type(token: str) -> Optional[ContractType]:
    """Normalize the tool's contract type spellings."""
    value = token.strip().lower()
    if value in _CONTRACT_TYPE_ALIASES:
        return _CONTRACT_TYPE_ALIASES[value]
    try:
        return ContractType(value)
    except ValueError:
        return None


def _contract_row(row_id: int, fields: list[str]) -> Optional[Contract]:
    contract_type = parse_contract_type(fields[4])
    if contract_type is None:
        return None

    rate, currency = parse_money(fields[5])
    active = parse_bool(fields[6], default=True) if len(fields) > 6 else True
    return Contract(
        id=row_id,
        number=fields[1],
        name=fields[2],
        client_name=fields[3],
        type=contract_type,
        rate=rate,
        currency=currency,
        active=active,
    )


def _expense_row(row_id: int, fields: list[str]) -> Optional[Expense]:
    amount, currency = parse_money(fields[5])
    return Expense(
        id=row_id,
        date=parse_date(fields[1]),
        description=fields[2],
        category=optional_text(fields[3]) or "other",
        vendor=optional_text(fields[4]),
        amount=amount,
        currency=currency,
    )


def _tracking_row(row_id: int, fields: list[str]) -> Optional[TrackingSession]:
    return TrackingSession(
        id=row_id,
        project=optional_text(fields[1]) or "",
        client_name=optional_text(fields[2]),
        date=parse_date(fields[3]),
        duration_minutes=parse_duration_minutes(fields[4]),
        billable=parse_bool(fields[5]),
    )


SCHEMAS: dict[EntityType, TableSchema] = {
    EntityType.INVOICE: TableSchema(
        entity_type=EntityType.INVOICE,
        columns=("ID", "NUMBER", "AMOUNT", "STATUS", "CLIENT", "DUE"),
        min_fields=6,
        build_row=_invoice_row,
    ),
    EntityType.CLIENT: TableSchema(
        entity_type=EntityType.CLIENT,
        columns=("ID", "NAME", "EMAIL", "ADDRESS", "TAX ID", "CREATED"),
        min_fields=2,
        build_row=_client_row,
    ),
    EntityType.CONTRACT: TableSchema(
        entity_type=EntityType.CONTRACT,
        columns=("ID", "CONTRACT#", "NAME", "CLIENT", "TYPE", "RATE/PRICE", "ACTIVE"),
        min_fields=6,
        build_row=_contract_row,
    ),
    EntityType.EXPENSE: TableSchema(
        entity_type=EntityType.EXPENSE,
        columns=("ID", "DATE", "DESCRIPTION", "CATEGORY", "VENDOR", "AMOUNT"),
        min_fields=6,
        build_row=_expense_row,
    ),
    EntityType.TRACKING: TableSchema(
        entity_type=EntityType.TRACKING,
        columns=("ID", "PROJECT", "CLIENT", "START", "DURATION", "BILLABLE"),
        min_fields=6,
        build_row=_tracking_row,
    ),
}


def _is_header(fields: list[str], schema: TableSchema) -> bool:
    return bool(fields) and fields[0].strip().upper() == "ID" and len(fields) >= schema.min_fields


def parse_table(entity_type: Union[EntityType, str], raw_text: str) -> TableParseResult:
    """
    Parse a list command's table output.

    Args:
        entity_type: Which schema to apply
        raw_text: Complete stdout of the list command

    Returns:
        TableParseResult with the parsed records and the dropped data lines

    Raises:
        ParseError: If the output has content but no recognizable header
    """
    entity_type = EntityType(entity_type)
    schema = SCHEMAS.get(entity_type)
    if schema is None:
        raise ParseError(f"No table schema for {entity_type.value}", entity_type=entity_type.value)

    result = TableParseResult()
    lines = [line for line in (raw_text or "").splitlines() if line.strip()]
    content = [line for line in lines if not is_rule_line(line)]
    if not content:
        return result

    header, rows = content[0], content[1:]
    if is_empty_message(header):
        return result

    if not _is_header(split_fields(header), schema):
        raise ParseError(
            f"Unrecognized {entity_type.value} table header",
            entity_type=entity_type.value,
            raw_excerpt=header[:120],
        )

    for line in rows:
        if is_summary_line(line):
            continue

        fields = split_fields(line)
        if len(fields) < schema.min_fields:
            result.skipped.append(line)
            continue

        row_id = parse_int(fields[0])
        if row_id is None:
            result.skipped.append(line)
            continue

        record = schema.build_row(row_id, fields)
        if record is None:
            result.skipped.append(line)
            continue

        result.records.append(record)

    return result


def parse(entity_type: Union[EntityType, str], raw_text: str) -> list[Record]:
    """
    Parse raw list output into typed records.

    The dashboard is a key/value summary rather than a table and always
    yields exactly one DashboardMetrics record.
    """
    entity_type = EntityType(entity_type)
    if entity_type is EntityType.DASHBOARD:
        return [parse_dashboard(raw_text)]
    return parse_table(entity_type, raw_text).records
