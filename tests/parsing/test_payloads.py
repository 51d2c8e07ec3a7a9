"""Tests for mapping the remote API's JSON onto records."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from ung_bridge.errors import ParseError
from ung_bridge.models import ActiveSession, ContractType, EntityType, InvoiceStatus, NoSession
from ung_bridge.parsing import dashboard_from_payload, records_from_payload, session_from_payload


class TestRecordsFromPayload:
    """Test list payload mapping."""

    def test_invoices(self):
        """Should map API field names and nested client objects."""
        payload = [
            {"id": 1, "invoice_num": "INV-001", "amount": 500, "currency": "USD",
             "status": "pending", "client": {"id": 3, "name": "Acme"}, "due_date": "2024-01-15T00:00:00Z"},
            {"id": 2, "invoice_num": "INV-002", "amount": "1200.50", "currency": "EUR",
             "status": "PAID", "client_name": "Globex"},
        ]
        invoices = records_from_payload(EntityType.INVOICE, payload)

        assert invoices[0].client_name == "Acme"
        assert invoices[0].due_date == date(2024, 1, 15)
        assert invoices[0].amount == Decimal("500")
        assert invoices[1].status is InvoiceStatus.PAID
        assert invoices[1].amount == Decimal("1200.50")
        assert invoices[1].due_date is None

    def test_skips_entries_without_id_or_known_status(self):
        payload = [
            {"invoice_num": "INV-001", "status": "pending"},
            {"id": True, "invoice_num": "INV-002", "status": "pending"},
            {"id": 3, "invoice_num": "INV-003", "status": "void"},
            "garbage",
            {"id": "4", "invoice_num": "INV-004", "status": "draft"},
        ]
        invoices = records_from_payload("invoice", payload)
        assert [i.id for i in invoices] == [4]

    def test_contracts_pick_rate_field_by_type(self):
        payload = [
            {"id": 1, "contract_num": "C-1", "name": "Web", "client_name": "Acme",
             "contract_type": "hourly", "hourly_rate": 80},
            {"id": 2, "contract_num": "C-2", "name": "Logo", "client_name": "Initech",
             "contract_type": "fixed_price", "fixed_price": "1500", "active": False},
        ]
        contracts = records_from_payload(EntityType.CONTRACT, payload)

        assert contracts[0].rate == Decimal("80")
        assert contracts[1].type is ContractType.FIXED
        assert contracts[1].rate == Decimal("1500")
        assert contracts[1].active is False

    def test_tracking_durations_in_seconds(self):
        """Should convert API durations from seconds to minutes."""
        payload = [
            {"id": 1, "project_name": "Web", "start_time": "2024-01-17T09:00:00Z", "duration": 5400, "billable": True},
            {"id": 2, "project_name": "Ops", "start_time": "2024-01-17T11:00:00Z", "hours": 0.5},
            {"id": 3, "project_name": "Ops", "date": "2024-01-16", "duration_minutes": 20},
        ]
        sessions = records_from_payload(EntityType.TRACKING, payload)

        assert [s.duration_minutes for s in sessions] == [90, 30, 20]
        assert sessions[0].date == date(2024, 1, 17)
        assert sessions[2].billable is False

    def test_expense_defaults(self):
        expenses = records_from_payload(EntityType.EXPENSE, [{"id": 9, "description": "Coffee", "amount": -3}])

        assert expenses[0].category == "other"
        assert expenses[0].amount == Decimal("0")
        assert expenses[0].currency == "USD"

    def test_null_payload_is_empty(self):
        assert records_from_payload(EntityType.CLIENT, None) == []

    def test_non_list_raises(self):
        with pytest.raises(ParseError):
            records_from_payload(EntityType.CLIENT, {"id": 1})


class TestSessionFromPayload:
    """Test the active-session endpoint mapping."""

    def test_null_is_idle(self):
        assert session_from_payload(None) == NoSession()

    def test_active(self):
        status = session_from_payload({
            "id": 11,
            "project_name": "Web",
            "client": {"name": "Acme"},
            "start_time": "2024-01-17T09:00:00Z",
            "billable": True,
        })

        assert status == ActiveSession(
            project="Web",
            client_name="Acme",
            start_time=datetime(2024, 1, 17, 9, 0, tzinfo=timezone.utc),
            session_id=11,
            billable=True,
        )

    def test_bad_start_raises(self):
        with pytest.raises(ParseError):
            session_from_payload({"id": 1, "project_name": "Web", "start_time": "soon"})


class TestDashboardFromPayload:
    """Test the revenue projection mapping."""

    def test_maps_fields(self):
        metrics = dashboard_from_payload({
            "total_monthly_revenue": 6000,
            "hourly_contracts_revenue": 4000,
            "retainer_revenue": 2000,
            "projected_hours": 50,
            "average_hourly_rate": 80,
            "active_contracts": 2,
            "total_clients": -1,
            "currency": "EUR",
        })

        assert metrics.total_monthly_revenue == Decimal("6000")
        assert metrics.hourly_revenue == Decimal("4000")
        assert metrics.active_contracts == 2
        assert metrics.total_clients == 0
        assert metrics.currency == "EUR"

    def test_non_object_defaults(self):
        assert dashboard_from_payload([]).total_monthly_revenue == Decimal("0")
