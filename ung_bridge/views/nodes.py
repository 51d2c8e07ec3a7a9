"""Presentation tree nodes, independent of any UI toolkit."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterator, Optional, Union

from .formatting import format_minutes, format_money


@dataclass(frozen=True)
class SummaryRow:
    """An aggregate figure such as a total or a count."""
    label: str
    value: Union[Decimal, int, str]
    unit: Optional[str] = None    # currency code, "minutes", or None
    icon: Optional[str] = None

    @property
    def display(self) -> str:
        if self.unit == "minutes":
            return format_minutes(int(self.value))
        if self.unit and isinstance(self.value, (Decimal, int)):
            return format_money(Decimal(self.value), self.unit)
        return str(self.value)


@dataclass(frozen=True)
class ActionRow:
    """A command the user can trigger."""
    label: str
    command: str
    icon: Optional[str] = None
    tooltip: Optional[str] = None


@dataclass(frozen=True)
class LeafRow:
    """One record."""
    record: Any
    label: str
    description: Optional[str] = None
    icon: Optional[str] = None


@dataclass(frozen=True)
class SectionNode:
    """A collapsible group of rows."""
    key: str
    label: str
    count: int
    collapsed: bool = False
    children: tuple["ViewNode", ...] = ()
    icon: Optional[str] = None


ViewNode = Union[SummaryRow, ActionRow, LeafRow, SectionNode]


@dataclass(frozen=True)
class ViewTree:
    """Root of a composed view."""
    title: str
    rows: tuple[ViewNode, ...] = ()

    def walk(self) -> Iterator[tuple[int, ViewNode]]:
        """Depth-first traversal yielding (depth, node)."""
        def visit(nodes: tuple[ViewNode, ...], depth: int) -> Iterator[tuple[int, ViewNode]]:
            for node in nodes:
                yield depth, node
                if isinstance(node, SectionNode):
                    yield from visit(node.children, depth + 1)

        return visit(self.rows, 0)

    def leaves(self) -> list[LeafRow]:
        return [node for _, node in self.walk() if isinstance(node, LeafRow)]

    def summaries(self) -> list[SummaryRow]:
        """Top-level summary rows."""
        return [node for node in self.rows if isinstance(node, SummaryRow)]

    def actions(self) -> list[ActionRow]:
        return [node for _, node in self.walk() if isinstance(node, ActionRow)]

    def section(self, key: str) -> Optional[SectionNode]:
        for _, node in self.walk():
            if isinstance(node, SectionNode) and node.key == key:
                return node
        return None

    def sections(self) -> list[SectionNode]:
        """Top-level sections in display order."""
        return [node for node in self.rows if isinstance(node, SectionNode)]
