"""
Tests for positional table parsing.

Each list command prints a header followed by whitespace-aligned rows;
these tests pin down row extraction, row-level skipping and the
batch-level header check.
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import (
    CLIENT_OUTPUT,
    CONTRACT_OUTPUT,
    DASHBOARD_OUTPUT,
    EXPENSE_OUTPUT,
    INVOICE_OUTPUT,
    TRACKING_OUTPUT,
)
from ung_bridge.errors import ParseError
from ung_bridge.models import (
    Client,
    ContractType,
    DashboardMetrics,
    EntityType,
    Invoice,
    InvoiceStatus,
)
from ung_bridge.parsing import parse, parse_contract_type, parse_table


class TestInvoiceTable:
    """Test invoice list parsing."""

    def test_two_row_example(self):
        """Should parse amounts, currencies, statuses and due dates per row."""
        raw = (
            "ID  InvoiceNum  Amount       Status   Client   DueDate\n"
            "1   INV-001     500.00 USD   pending  Acme     2024-01-15\n"
            "2   INV-002     1200.00 EUR  paid     Globex   2024-02-01\n"
        )
        records = parse(EntityType.INVOICE, raw)

        assert records == [
            Invoice(1, "INV-001", Decimal("500.00"), "USD", InvoiceStatus.PENDING, "Acme", date(2024, 1, 15)),
            Invoice(2, "INV-002", Decimal("1200.00"), "EUR", InvoiceStatus.PAID, "Globex", date(2024, 2, 1)),
        ]

    def test_sample_output(self):
        """Should skip the rule line and keep all four invoices."""
        result = parse_table("invoice", INVOICE_OUTPUT)

        assert [r.number for r in result.records] == ["INV-001", "INV-002", "INV-003", "INV-004"]
        assert result.skipped == []

        overdue = result.records[2]
        assert overdue.amount == Decimal("750.50")
        assert overdue.currency == "USD"
        assert overdue.status is InvoiceStatus.OVERDUE

        draft = result.records[3]
        assert draft.due_date is None

    def test_unknown_status_drops_row(self):
        """Should skip rows whose status is outside the known set."""
        raw = (
            "ID  NUMBER   AMOUNT      STATUS    CLIENT  DUE\n"
            "1   INV-001  500.00 USD  archived  Acme    2024-01-15\n"
            "2   INV-002  100.00 USD  sent      Acme    2024-01-20\n"
        )
        result = parse_table(EntityType.INVOICE, raw)

        assert [r.id for r in result.records] == [2]
        assert len(result.skipped) == 1
        assert "archived" in result.skipped[0]

    def test_short_and_bad_id_rows_skipped(self):
        """Should drop rows with too few fields or a non-numeric id."""
        raw = (
            "ID  NUMBER   AMOUNT      STATUS   CLIENT  DUE\n"
            "1   INV-001  500.00 USD  pending\n"
            "x   INV-002  100.00 USD  sent     Acme    2024-01-20\n"
            "3   INV-003  100.00 USD  sent     Acme    2024-01-20\n"
        )
        result = parse_table(EntityType.INVOICE, raw)

        assert [r.id for r in result.records] == [3]
        assert len(result.skipped) == 2

    def test_summary_line_is_not_a_record(self):
        """Should ignore trailing totals."""
        raw = INVOICE_OUTPUT + "\nTotal: $2,750.50\n"
        assert len(parse(EntityType.INVOICE, raw)) == 4

    def test_negative_amount_becomes_zero(self):
        raw = (
            "ID  NUMBER   AMOUNT       STATUS   CLIENT  DUE\n"
            "1   INV-001  -40.00 USD   draft    Acme    -\n"
        )
        assert parse(EntityType.INVOICE, raw)[0].amount == Decimal("0")


class TestEmptyAndMalformedOutput:
    """Test batch-level outcomes."""

    @pytest.mark.parametrize("raw", ["", "   \n\n", "No invoices found\n", "No invoices yet"])
    def test_empty_outputs(self, raw):
        """Should return an empty list, not an error."""
        assert parse(EntityType.INVOICE, raw) == []

    def test_header_only(self):
        assert parse(EntityType.INVOICE, "ID  NUMBER  AMOUNT  STATUS  CLIENT  DUE\n") == []

    def test_unrecognized_header_raises(self):
        """Should fail the batch when the first line is not a header."""
        with pytest.raises(ParseError) as exc_info:
            parse(EntityType.INVOICE, "Error: database is locked\nsomething else\n")

        assert exc_info.value.entity_type == "invoice"
        assert "database is locked" in exc_info.value.raw_excerpt

    def test_header_with_too_few_columns_raises(self):
        with pytest.raises(ParseError):
            parse(EntityType.CONTRACT, "ID  NAME\n1  Foo\n")


class TestOtherTables:
    """Test the remaining entity schemas against sample output."""

    def test_clients(self):
        """Should map placeholder columns to None."""
        clients = parse(EntityType.CLIENT, CLIENT_OUTPUT)

        assert clients[0] == Client(1, "Acme Corp", "billing@acme.test", "1 Road Runner Way", "US-123")
        assert clients[1].address is None
        assert clients[1].tax_id is None
        assert [c.name for c in clients] == ["Acme Corp", "Globex", "Initech"]

    def test_client_with_name_only(self):
        clients = parse(EntityType.CLIENT, "ID  NAME\n7   Solo Ltd\n")
        assert clients == [Client(7, "Solo Ltd")]

    def test_contracts(self):
        """Should normalize the contract type and read the active flag."""
        contracts = parse(EntityType.CONTRACT, CONTRACT_OUTPUT)

        assert [c.type for c in contracts] == [ContractType.HOURLY, ContractType.RETAINER, ContractType.FIXED]
        assert contracts[0].rate == Decimal("80.00")
        assert contracts[1].rate == Decimal("2000.00")
        assert contracts[1].currency == "EUR"
        assert contracts[0].active is True
        assert contracts[2].active is False

    def test_contract_without_active_column_defaults_active(self):
        raw = (
            "ID  CONTRACT#  NAME  CLIENT  TYPE    RATE\n"
            "1   CTR-001    Web   Acme    hourly  80 USD\n"
        )
        assert parse(EntityType.CONTRACT, raw)[0].active is True

    def test_expenses(self):
        """Should skip the totals line and keep optional vendor empty."""
        expenses = parse(EntityType.EXPENSE, EXPENSE_OUTPUT)

        assert len(expenses) == 3
        assert expenses[0].category == "hardware"
        assert expenses[0].amount == Decimal("49.99")
        assert expenses[2].vendor is None
        assert expenses[2].currency == "EUR"
        assert expenses[2].date == date(2024, 1, 15)

    def test_tracking_sessions(self):
        """Should normalize durations and tolerate a missing client."""
        sessions = parse(EntityType.TRACKING, TRACKING_OUTPUT)

        assert [s.duration_minutes for s in sessions] == [0, 45, 150, 60]
        assert sessions[0].date == date(2024, 1, 17)
        assert sessions[0].billable is True
        assert sessions[2].billable is False
        assert sessions[3].client_name is None

    def test_dashboard_is_single_record(self):
        """Should always yield exactly one metrics record."""
        records = parse(EntityType.DASHBOARD, DASHBOARD_OUTPUT)
        assert len(records) == 1
        assert isinstance(records[0], DashboardMetrics)

        assert parse(EntityType.DASHBOARD, "") == [DashboardMetrics()]


class TestParseContractType:
    """Test contract type spellings."""

    @pytest.mark.parametrize("token", ["fixed_price", "fixed-price", "Fixed Price", "fixed"])
    def test_fixed_aliases(self, token):
        assert parse_contract_type(token) is ContractType.FIXED

    def test_unknown(self):
        assert parse_contract_type("barter") is None
