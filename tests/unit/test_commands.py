"""Unit tests for mutation validation and CLI argument building."""

from decimal import Decimal

import pytest

from ung_bridge.client import MUTATIONS, UngClient, build_mutation, mutation_spec
from ung_bridge.errors import ValidationError
from ung_bridge.models import EntityType


@pytest.fixture
def client() -> UngClient:
    return UngClient()


class TestMutationCatalog:
    """Test the supported mutation set."""

    def test_destructive_operations(self) -> None:
        """Test that every delete, and only deletes, need confirmation."""
        destructive = {key for key, spec in MUTATIONS.items() if spec.destructive}
        assert destructive == {
            (EntityType.CLIENT, "delete"),
            (EntityType.CONTRACT, "delete"),
            (EntityType.INVOICE, "delete"),
            (EntityType.EXPENSE, "delete"),
        }

    def test_tracking_start_stop_are_priority(self) -> None:
        assert mutation_spec("tracking", "start").priority is True
        assert mutation_spec("tracking", "stop").priority is True
        assert mutation_spec("tracking", "log").priority is False

    def test_unknown_entity(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            mutation_spec("project", "add")
        assert exc_info.value.field == "entity_type"

    def test_unsupported_operation(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            mutation_spec(EntityType.DASHBOARD, "delete")
        assert exc_info.value.field == "operation"


class TestValidation:
    """Test local parameter validation."""

    def test_client_add(self) -> None:
        request = build_mutation("client", "add", {"name": " Acme ", "email": "a@acme.test", "tax_id": ""})
        assert request.params == {"name": "Acme", "email": "a@acme.test"}
        assert request.label == "client add"

    def test_client_add_requires_name_first(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_mutation("client", "add", {"email": "bad"})
        assert exc_info.value.field == "name"

    def test_client_add_rejects_bad_email(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_mutation("client", "add", {"name": "Acme", "email": "not-an-email"})
        assert exc_info.value.field == "email"

    @pytest.mark.parametrize("value", [0, -3, "abc", None, True, 1.5])
    def test_delete_rejects_bad_ids(self, value) -> None:
        with pytest.raises(ValidationError):
            build_mutation("invoice", "delete", {"id": value})

    def test_delete_accepts_digit_string(self) -> None:
        assert build_mutation("expense", "delete", {"id": "12"}).params == {"id": 12}

    def test_invoice_new(self) -> None:
        request = build_mutation("invoice", "new", {
            "client": "Acme",
            "amount": "1500.50",
            "currency": "eur",
            "due_date": "2024-03-01",
        })
        assert request.params == {
            "client": "Acme",
            "amount": Decimal("1500.50"),
            "currency": "EUR",
            "due_date": "2024-03-01",
        }

    @pytest.mark.parametrize("params,field", [
        ({"amount": 10}, "client"),
        ({"client": "Acme", "amount": 0}, "amount"),
        ({"client": "Acme", "amount": "ten"}, "amount"),
        ({"client": "Acme", "amount": 10, "currency": "dollars"}, "currency"),
        ({"client": "Acme", "amount": 10, "due_date": "next week"}, "due_date"),
    ])
    def test_invoice_new_rejections(self, params, field) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_mutation("invoice", "new", params)
        assert exc_info.value.field == field

    def test_invoice_mark(self) -> None:
        request = build_mutation("invoice", "mark", {"id": 3, "status": "PAID"})
        assert request.params == {"id": 3, "status": "paid"}

    def test_invoice_mark_unknown_status(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_mutation("invoice", "mark", {"id": 3, "status": "archived"})
        assert exc_info.value.field == "status"

    def test_expense_add(self) -> None:
        request = build_mutation("expense", "add", {"description": "Laptop", "amount": 999})
        assert request.params == {"description": "Laptop", "amount": Decimal("999")}

    def test_tracking_start_requires_project_or_client(self) -> None:
        with pytest.raises(ValidationError):
            build_mutation("tracking", "start", {"notes": "x"})

    def test_tracking_start_billable_must_be_bool(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_mutation("tracking", "start", {"project": "Web", "billable": "yes"})
        assert exc_info.value.field == "billable"

    def test_tracking_stop_ignores_params(self) -> None:
        assert build_mutation("tracking", "stop", {"anything": 1}).params == {}

    def test_tracking_log(self) -> None:
        request = build_mutation("tracking", "log", {"hours": "1.5", "contract": 2, "project": "Web"})
        assert request.params == {"hours": Decimal("1.5"), "contract": 2, "project": "Web"}

    def test_tracking_log_requires_target(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_mutation("tracking", "log", {"hours": 2})
        assert exc_info.value.field == "contract"


class TestUngClient:
    """Test argument vector construction."""

    def test_list_args(self, client: UngClient) -> None:
        assert client.list_args("invoice") == ["invoice", "ls"]
        assert client.list_args(EntityType.TRACKING) == ["track", "ls"]

    def test_list_filters_sorted(self, client: UngClient) -> None:
        args = client.list_args("invoice", {"status": "paid", "all": True, "client": None, "draft": False})
        assert args == ["invoice", "ls", "--all", "--status", "paid"]

    def test_dashboard_and_status(self, client: UngClient) -> None:
        assert client.list_args("dashboard") == ["dashboard"]
        assert client.status_args() == ["track", "now"]

    def test_delete_and_mark(self, client: UngClient) -> None:
        assert client.mutation_args(build_mutation("client", "delete", {"id": 4})) == ["client", "delete", "4"]
        assert client.mutation_args(build_mutation("invoice", "mark", {"id": 4, "status": "sent"})) == [
            "invoice", "mark", "4", "--status", "sent",
        ]

    def test_invoice_new_flags(self, client: UngClient) -> None:
        request = build_mutation("invoice", "new", {"client": "Acme Corp", "amount": 500, "due_date": "2024-03-01"})
        assert client.mutation_args(request) == [
            "invoice", "new",
            "--client-name", "Acme Corp",
            "--price", "500",
            "--due", "2024-03-01",
        ]

    def test_invoice_new_with_client_id(self, client: UngClient) -> None:
        request = build_mutation("invoice", "new", {"client": 3, "amount": 500})
        assert client.mutation_args(request)[:4] == ["invoice", "new", "--client", "3"]

    def test_tracking_start_flags(self, client: UngClient) -> None:
        request = build_mutation("tracking", "start", {"project": "Web", "client": "Acme", "billable": False})
        assert client.mutation_args(request) == [
            "track", "start", "--project", "Web", "--client", "Acme", "--billable", "false",
        ]

    def test_client_add_flags(self, client: UngClient) -> None:
        request = build_mutation("client", "add", {"name": "Acme", "email": "a@acme.test", "tax_id": "US-1"})
        assert client.mutation_args(request) == [
            "client", "add", "--name", "Acme", "--email", "a@acme.test", "--tax-id", "US-1",
        ]
