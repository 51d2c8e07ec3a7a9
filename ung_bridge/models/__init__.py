"""
Typed domain records for data owned by the external ung tool.
"""
from .records import (
    ActiveSession,
    Client,
    Contract,
    ContractType,
    DashboardMetrics,
    EntityType,
    Expense,
    Invoice,
    InvoiceStatus,
    NoSession,
    Record,
    SessionStatus,
    TrackingSession,
    UNPAID_STATUSES,
)

__all__ = [
    "ActiveSession",
    "Client",
    "Contract",
    "ContractType",
    "DashboardMetrics",
    "EntityType",
    "Expense",
    "Invoice",
    "InvoiceStatus",
    "NoSession",
    "Record",
    "SessionStatus",
    "TrackingSession",
    "UNPAID_STATUSES",
]
