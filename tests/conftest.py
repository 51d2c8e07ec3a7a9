"""Pytest configuration and shared fixtures."""

from datetime import datetime
from typing import Any, Callable, Optional, Sequence

import pytest

from ung_bridge.bus import CommandBus
from ung_bridge.cache import EntityCache
from ung_bridge.client import CliBackend
from ung_bridge.config.defaults import BridgeSettings
from ung_bridge.monitor import SessionMonitor
from ung_bridge.service import BridgeService


INVOICE_OUTPUT = """\
ID  NUMBER    AMOUNT        STATUS   CLIENT       DUE
--  ------    ------        ------   ------       ---
1   INV-001   500.00 USD    pending  Acme Corp    2024-01-15
2   INV-002   1,200.00 EUR  paid     Globex       2024-02-01
3   INV-003   $750.50       overdue  Acme Corp    2023-12-01
4   INV-004   300.00 USD    draft    Initech      -
"""

CLIENT_OUTPUT = """\
ID  NAME       EMAIL               ADDRESS              TAX ID      CREATED
1   Acme Corp  billing@acme.test   1 Road Runner Way    US-123      2024-01-02
2   Globex     ap@globex.test      -                    -           2024-01-05
3   Initech    hello@initech.test  4120 Freidrich Ln    -           2024-02-10
"""

CONTRACT_OUTPUT = """\
ID  CONTRACT#  NAME              CLIENT     TYPE         RATE/PRICE      ACTIVE
1   CTR-001    Website Rebuild   Acme Corp  hourly       80.00 USD/hr    ✓
2   CTR-002    Support Retainer  Globex     retainer     2,000.00 EUR    ✓
3   CTR-003    Logo Design       Initech    fixed_price  1,500.00 USD    ✗
"""

EXPENSE_OUTPUT = """\
ID  DATE        DESCRIPTION        CATEGORY  VENDOR    AMOUNT
1   2024-01-10  Laptop stand       hardware  Amazon    49.99 USD
2   2024-01-12  Cloud hosting      software  AWS       120.00 USD
3   2024-01-15  Train to client    travel    -         35.50 EUR

Total: $205.49
"""

TRACKING_OUTPUT = """\
ID  PROJECT   CLIENT     START             DURATION  BILLABLE
5   Website   Acme Corp  2024-01-17 09:00  ongoing   Yes
4   Website   Acme Corp  2024-01-17 08:00  0h 45m    Yes
3   Support   Globex     2024-01-16 13:00  2h 30m    No
2   Internal  -          2024-01-15 10:00  1h 0m     No
"""

STATUS_ACTIVE_OUTPUT = """\
Active Tracking Session:
  ID: 5
  Project: Website
  Client: Acme Corp (ID: 1)
  Started: 2024-01-17 09:00:00
  Elapsed: 1h 2m 3s
  Billable: true
  Notes: Landing page
"""

STATUS_IDLE_OUTPUT = "No active tracking session\n"

DASHBOARD_OUTPUT = """\
Revenue Projection (Monthly)

  Hourly Contracts (1):      $4,000.00
  Retainer Contracts (1):    $2,000.00
  Projected Hours:           50.0
  Average Rate:              $80.00

TOTAL: $6,000.00/month from 2 contracts

  Total Clients: 3
  Pending Invoices: 2
  Unpaid Amount: $1,250.50
"""


class FakeRunner:
    """
    Stands in for CliRunner.

    Responses are keyed by the first two arguments ("invoice", "ls");
    a response may be a string, an exception to raise, or a callable.
    """

    def __init__(self, responses: Optional[dict[tuple[str, ...], Any]] = None):
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []

    def run(self, args: Sequence[str], use_global: Optional[bool] = None) -> str:
        key = tuple(args)
        self.calls.append(key)

        response = self.responses.get(key, self.responses.get(key[:2], self.responses.get(key[:1])))
        if response is None:
            raise AssertionError(f"Unexpected invocation: {key}")
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response()
        return response


class FakeClock:
    """Monotonic clock under test control."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def default_responses() -> dict[tuple[str, ...], Any]:
    return {
        ("invoice", "ls"): INVOICE_OUTPUT,
        ("client", "ls"): CLIENT_OUTPUT,
        ("contract", "ls"): CONTRACT_OUTPUT,
        ("expense", "ls"): EXPENSE_OUTPUT,
        ("track", "ls"): TRACKING_OUTPUT,
        ("track", "now"): STATUS_IDLE_OUTPUT,
        ("dashboard",): DASHBOARD_OUTPUT,
    }


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Runner answering every list command with the sample outputs."""
    return FakeRunner(default_responses())


@pytest.fixture
def make_runner() -> Callable[..., FakeRunner]:
    """Factory for runners with custom responses on top of the defaults."""
    def factory(**overrides: Any) -> FakeRunner:
        responses = default_responses()
        for key, value in overrides.items():
            responses[tuple(key.split("_"))] = value
        return FakeRunner(responses)
    return factory


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def bus():
    """A started command bus with short timeouts."""
    command_bus = CommandBus(default_timeout=2.0, default_max_retries=2, name="test-bus")
    command_bus.start()
    yield command_bus
    command_bus.shutdown(wait=True, cancel_pending=True)


@pytest.fixture
def fixed_now() -> datetime:
    """Wall-clock reference matching the sample tracking output."""
    return datetime(2024, 1, 17, 10, 0, 0)


@pytest.fixture
def make_service(bus, fake_clock, fixed_now):
    """Factory for a BridgeService over a fake runner; the monitor is not started."""
    created = []

    def factory(runner: FakeRunner, confirm=None, notify=None, settings=None) -> BridgeService:
        backend = CliBackend(runner)
        cache = EntityCache(ttl_seconds=60.0, clock=fake_clock)
        service = BridgeService(
            backend=backend,
            bus=bus,
            cache=cache,
            settings=settings or BridgeSettings(),
            confirm=confirm,
            notify=notify,
        )
        service.monitor = SessionMonitor(
            fetch_status=service._fetch_status,
            fetch_sessions=lambda: service.list_entities("tracking"),
            clock=lambda reference: fixed_now,
        )
        created.append(service)
        return service

    yield factory

    for service in created:
        service.monitor.stop()
