"""
Hierarchical view model module.

Composes typed records into UI-agnostic trees of summaries, actions,
sections and leaves.
"""

from .builders import (
    build_client_view,
    build_contract_view,
    build_dashboard_view,
    build_expense_view,
    build_invoice_view,
    build_tracking_view,
)
from .formatting import format_minutes, format_money
from .nodes import ActionRow, LeafRow, SectionNode, SummaryRow, ViewNode, ViewTree

__all__ = [
    # Nodes
    "ActionRow",
    "LeafRow",
    "SectionNode",
    "SummaryRow",
    "ViewNode",
    "ViewTree",
    # Builders
    "build_client_view",
    "build_contract_view",
    "build_dashboard_view",
    "build_expense_view",
    "build_invoice_view",
    "build_tracking_view",
    # Formatting
    "format_minutes",
    "format_money",
]
