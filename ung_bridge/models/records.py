"""
Domain records produced by the output parser.

All records are immutable snapshots of data owned by the external tool's
store; the bridge only ever holds cached, time-bounded copies.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class EntityType(str, Enum):
    """Entity types the tool can list."""
    INVOICE = "invoice"
    CLIENT = "client"
    CONTRACT = "contract"
    EXPENSE = "expense"
    TRACKING = "tracking"
    DASHBOARD = "dashboard"


class InvoiceStatus(str, Enum):
    """Invoice lifecycle statuses; transitions are owned by the tool."""
    DRAFT = "draft"
    PENDING = "pending"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


UNPAID_STATUSES = frozenset({InvoiceStatus.PENDING, InvoiceStatus.SENT, InvoiceStatus.OVERDUE})


class ContractType(str, Enum):
    """Contract billing models."""
    HOURLY = "hourly"
    RETAINER = "retainer"
    FIXED = "fixed"
    MILESTONE = "milestone"


@dataclass(frozen=True)
class Invoice:
    """An invoice as listed by the tool."""
    id: int
    number: str
    amount: Decimal
    currency: str
    status: InvoiceStatus
    client_name: str
    due_date: Optional[date] = None

    @property
    def is_unpaid(self) -> bool:
        return self.status in UNPAID_STATUSES


@dataclass(frozen=True)
class Client:
    """A billed client. Referenced elsewhere by name, not id."""
    id: int
    name: str
    email: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None


@dataclass(frozen=True)
class Contract:
    """A contract with a client."""
    id: int
    number: str
    name: str
    client_name: str
    type: ContractType
    rate: Decimal
    currency: str
    active: bool = True


@dataclass(frozen=True)
class Expense:
    """A business expense."""
    id: int
    date: Optional[date]
    description: str
    category: str
    amount: Decimal
    currency: str
    vendor: Optional[str] = None


@dataclass(frozen=True)
class TrackingSession:
    """A finished (or ongoing) time-tracking session."""
    id: int
    project: str
    client_name: Optional[str]
    date: Optional[date]
    duration_minutes: int
    billable: bool


@dataclass(frozen=True)
class ActiveSession:
    """The single running tracking session, as last reported by the tool."""
    project: str
    client_name: Optional[str]
    start_time: datetime
    session_id: Optional[int] = None
    billable: Optional[bool] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class NoSession:
    """The tool reported that nothing is being tracked."""


SessionStatus = Union[ActiveSession, NoSession]


@dataclass(frozen=True)
class DashboardMetrics:
    """Aggregate snapshot; always derived, replaced wholesale on each fetch."""
    total_monthly_revenue: Decimal = Decimal("0")
    hourly_revenue: Decimal = Decimal("0")
    retainer_revenue: Decimal = Decimal("0")
    projected_hours: Decimal = Decimal("0")
    average_hourly_rate: Decimal = Decimal("0")
    active_contracts: int = 0
    total_clients: int = 0
    pending_invoices: int = 0
    unpaid_amount: Decimal = Decimal("0")
    currency: str = "USD"


Record = Union[Invoice, Client, Contract, Expense, TrackingSession, DashboardMetrics]
