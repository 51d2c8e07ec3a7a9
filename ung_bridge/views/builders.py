"""
View builders.

Each builder is a pure function of one record snapshot: summaries are
computed from exactly the records that become leaves, so totals and
counts can never disagree with the rows shown beneath them.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..models import (
    ActiveSession,
    Client,
    Contract,
    ContractType,
    DashboardMetrics,
    Expense,
    Invoice,
    InvoiceStatus,
    TrackingSession,
)
from ..utils.time import elapsed_seconds, format_elapsed, week_start
from .formatting import format_minutes, format_money
from .nodes import ActionRow, LeafRow, SectionNode, SummaryRow, ViewNode, ViewTree

# (status, label, icon) in display order
INVOICE_SECTIONS = (
    (InvoiceStatus.OVERDUE, "Overdue", "alert"),
    (InvoiceStatus.PENDING, "Pending", "circle-outline"),
    (InvoiceStatus.SENT, "Sent", "mail"),
    (InvoiceStatus.PAID, "Paid", "pass-filled"),
    (InvoiceStatus.DRAFT, "Drafts", "edit"),
)

CONTRACT_SECTIONS = (
    (ContractType.HOURLY, "Hourly", "clock"),
    (ContractType.RETAINER, "Retainer", "sync"),
    (ContractType.FIXED, "Fixed Price", "tag"),
    (ContractType.MILESTONE, "Milestone", "milestone"),
)

RECENT_SESSIONS_LIMIT = 10


def _totals_by_currency(items: Iterable[tuple[str, Decimal]]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for currency, amount in items:
        totals[currency] += amount
    return dict(sorted(totals.items()))


def _by_date_desc(value: Optional[date]) -> tuple[int, date]:
    # Undated records sort last
    return (0, date.min) if value is None else (1, value)


def build_invoice_view(invoices: Sequence[Invoice]) -> ViewTree:
    """Invoices grouped by status with invoiced and awaiting-payment totals."""
    rows: list[ViewNode] = []

    for currency, total in _totals_by_currency((i.currency, i.amount) for i in invoices).items():
        rows.append(SummaryRow("Total Invoiced", total, currency, "graph"))

    unpaid = _totals_by_currency((i.currency, i.amount) for i in invoices if i.is_unpaid)
    for currency, total in unpaid.items():
        if total > 0:
            rows.append(SummaryRow("Awaiting Payment", total, currency, "clock"))

    rows.append(ActionRow("Create New Invoice", "ung.createInvoice", "add"))
    rows.append(ActionRow("Generate from Time", "ung.generateInvoiceFromTime", "clock"))

    for status, label, icon in INVOICE_SECTIONS:
        members = [i for i in invoices if i.status is status]
        if not members and status is not InvoiceStatus.PENDING:
            continue

        members.sort(key=lambda i: _by_date_desc(i.due_date), reverse=True)
        leaves = tuple(
            LeafRow(
                record=i,
                label=f"{i.number} - {i.client_name}",
                description=_invoice_description(i),
                icon=icon,
            )
            for i in members
        )
        rows.append(SectionNode(
            key=status.value,
            label=label,
            count=len(leaves),
            collapsed=not leaves,
            children=leaves,
            icon=icon,
        ))

    return ViewTree("Invoices", tuple(rows))


def _invoice_description(invoice: Invoice) -> str:
    text = format_money(invoice.amount, invoice.currency)
    if invoice.due_date is not None:
        text += f" · due {invoice.due_date.isoformat()}"
    return text


def _contract_rate(contract: Contract) -> str:
    if contract.rate <= 0:
        return "-"
    rate = format_money(contract.rate, contract.currency)
    if contract.type is ContractType.HOURLY:
        return f"{rate}/hr"
    if contract.type is ContractType.RETAINER:
        return f"{rate}/mo"
    return rate


def build_contract_view(contracts: Sequence[Contract]) -> ViewTree:
    """Contracts grouped by billing type."""
    active = sum(1 for c in contracts if c.active)
    rows: list[ViewNode] = [
        SummaryRow("Active Contracts", active, None, "file-text"),
        ActionRow("New Contract", "ung.createContract", "file-add"),
    ]

    for contract_type, label, icon in CONTRACT_SECTIONS:
        members = sorted(
            (c for c in contracts if c.type is contract_type),
            key=lambda c: c.name.lower()
        )
        if not members:
            continue

        leaves = tuple(
            LeafRow(
                record=c,
                label=c.name,
                description=f"{c.client_name} · {_contract_rate(c)}" + ("" if c.active else " · inactive"),
                icon="pass-filled" if c.active else "circle-slash",
            )
            for c in members
        )
        rows.append(SectionNode(
            key=contract_type.value,
            label=label,
            count=len(leaves),
            children=leaves,
            icon=icon,
        ))

    return ViewTree("Contracts", tuple(rows))


def _session_leaf(session: TrackingSession) -> LeafRow:
    parts = [format_minutes(session.duration_minutes)]
    if session.client_name:
        parts.append(session.client_name)
    if session.date is not None:
        parts.append(session.date.isoformat())
    return LeafRow(
        record=session,
        label=session.project or "Untitled",
        description=" · ".join(parts),
        icon="clock",
    )


def build_tracking_view(
    sessions: Sequence[TrackingSession],
    active: Optional[ActiveSession] = None,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
    elapsed: Optional[float] = None,
    recent_limit: int = RECENT_SESSIONS_LIMIT
) -> ViewTree:
    """
    Active session, daily and weekly totals, recent sessions and a
    per-client breakdown.

    Args:
        sessions: Session list in the tool's order (most recent first)
        active: Running session, if any
        today: Reference day for the Today/This Week totals
        now: Reference time for the active session's elapsed time
        elapsed: Elapsed seconds already computed by the session monitor
        recent_limit: Maximum rows in the Recent Sessions section

    Returns:
        The tracking ViewTree
    """
    if now is None:
        now = datetime.now()
    if today is None:
        today = now.date()

    rows: list[ViewNode] = []

    if active is not None:
        if elapsed is None:
            same_frame = (now.tzinfo is None) == (active.start_time.tzinfo is None)
            elapsed = max(elapsed_seconds(active.start_time, now if same_frame else None), 0.0)
        rows.append(SummaryRow("Active Session", active.project or "Untitled", None, "record"))
        rows.append(SummaryRow("Duration", format_elapsed(elapsed), None, "clock"))
        if active.client_name:
            rows.append(SummaryRow("Client", active.client_name, None, "person"))
        rows.append(ActionRow("Stop Tracking", "ung.stopTracking", "debug-stop",
                              "Stop the current tracking session"))
    else:
        rows.append(ActionRow("Start Tracking", "ung.startTracking", "play",
                              "Start a new time tracking session"))

    rows.append(ActionRow("Log Time Manually", "ung.logTimeManually", "add",
                          "Add a time entry manually"))

    todays = [s for s in sessions if s.date == today]
    if todays or active is not None:
        rows.append(SummaryRow("Today", sum(s.duration_minutes for s in todays), "minutes", "calendar"))
        billable = sum(s.duration_minutes for s in todays if s.billable)
        if billable > 0:
            rows.append(SummaryRow("Billable Today", billable, "minutes", "credit-card"))

    monday = week_start(today)
    week_minutes = sum(
        s.duration_minutes for s in sessions
        if s.date is not None and monday <= s.date <= today
    )
    if week_minutes > 0:
        rows.append(SummaryRow("This Week", week_minutes, "minutes", "calendar"))

    if sessions:
        recent = tuple(_session_leaf(s) for s in sessions[:recent_limit])
        rows.append(SectionNode("recent", "Recent Sessions", len(recent), children=recent, icon="history"))

    clients: dict[str, list[TrackingSession]] = defaultdict(list)
    for session in sessions:
        if session.client_name:
            clients[session.client_name].append(session)

    if len(clients) > 1:
        per_client = tuple(
            SummaryRow(
                name,
                sum(s.duration_minutes for s in members),
                "minutes",
                "person",
            )
            for name, members in sorted(clients.items(), key=lambda item: item[0].lower())
        )
        rows.append(SectionNode("clients", "By Client", len(per_client), children=per_client,
                                icon="organization"))

    return ViewTree("Time Tracking", tuple(rows))


def build_expense_view(expenses: Sequence[Expense]) -> ViewTree:
    """Expenses grouped by category, alphabetically."""
    rows: list[ViewNode] = []

    for currency, total in _totals_by_currency((e.currency, e.amount) for e in expenses).items():
        rows.append(SummaryRow("Total Expenses", total, currency, "credit-card"))

    rows.append(ActionRow("Log Expense", "ung.logExpense", "add"))

    categories: dict[str, list[Expense]] = defaultdict(list)
    for expense in expenses:
        categories[expense.category].append(expense)

    for category in sorted(categories, key=str.lower):
        members = sorted(categories[category], key=lambda e: _by_date_desc(e.date), reverse=True)
        leaves = tuple(
            LeafRow(
                record=e,
                label=e.description,
                description=format_money(e.amount, e.currency) + (f" · {e.vendor}" if e.vendor else ""),
                icon="receipt",
            )
            for e in members
        )
        rows.append(SectionNode(
            key=category,
            label=category.replace("_", " ").title(),
            count=len(leaves),
            children=leaves,
            icon="folder",
        ))

    return ViewTree("Expenses", tuple(rows))


def build_client_view(clients: Sequence[Client]) -> ViewTree:
    """Flat client list."""
    rows: list[ViewNode] = [
        SummaryRow("Clients", len(clients), None, "organization"),
        ActionRow("Add Client", "ung.createClient", "person-add"),
    ]
    rows.extend(
        LeafRow(record=c, label=c.name, description=c.email, icon="person")
        for c in sorted(clients, key=lambda c: c.name.lower())
    )
    return ViewTree("Clients", tuple(rows))


def build_dashboard_view(
    metrics: DashboardMetrics,
    active: Optional[ActiveSession] = None,
    elapsed: Optional[float] = None
) -> ViewTree:
    """Revenue overview, business summary, quick actions and the running session."""
    rows: list[ViewNode] = []
    currency = metrics.currency

    if active is not None:
        children: list[ViewNode] = [SummaryRow("Project", active.project or "Untitled", None, "record")]
        if elapsed is not None:
            children.append(SummaryRow("Duration", format_elapsed(elapsed), None, "clock"))
        if active.client_name:
            children.append(SummaryRow("Client", active.client_name, None, "person"))
        children.append(ActionRow("Stop Tracking", "ung.stopTracking", "debug-stop"))
        rows.append(SectionNode("active", "Active Session", len(children), children=tuple(children),
                                icon="record"))

    actions: list[ViewNode] = []
    if active is None:
        actions.append(ActionRow("Start Time Tracking", "ung.startTracking", "play"))
    actions.extend([
        ActionRow("Create Invoice", "ung.createInvoice", "file-add"),
        ActionRow("Log Expense", "ung.logExpense", "credit-card"),
        ActionRow("Add Client", "ung.createClient", "person-add"),
        ActionRow("New Contract", "ung.createContract", "file-add"),
    ])
    rows.append(SectionNode("actions", "Quick Actions", len(actions), children=tuple(actions), icon="zap"))

    revenue = (
        SummaryRow("Total Revenue", metrics.total_monthly_revenue, currency, "graph"),
        SummaryRow("From Hourly", metrics.hourly_revenue, currency, "clock"),
        SummaryRow("From Retainers", metrics.retainer_revenue, currency, "sync"),
        SummaryRow("Hours This Month", metrics.projected_hours, None, "watch"),
        SummaryRow("Average Rate", metrics.average_hourly_rate, currency, "tag"),
    )
    rows.append(SectionNode("revenue", "Revenue Overview", len(revenue), children=revenue, icon="graph"))

    stats = (
        SummaryRow("Active Clients", metrics.total_clients, None, "organization"),
        SummaryRow("Active Contracts", metrics.active_contracts, None, "file-text"),
        SummaryRow("Pending Invoices", metrics.pending_invoices, None, "circle-outline"),
        SummaryRow("Unpaid Amount", metrics.unpaid_amount, currency, "alert"),
    )
    rows.append(SectionNode("stats", "Business Summary", len(stats), children=stats, icon="briefcase"))

    return ViewTree("Dashboard", tuple(rows))
