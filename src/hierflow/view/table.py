"""
Flat table projection of the visible tree.
"""

import math
from dataclasses import dataclass
from typing import AbstractSet, List, Mapping, Optional, Sequence, Tuple

from ..config import TABLE_BASE_INDENT, TABLE_INDENT_PER_LEVEL
from ..core.types import Scalar
from ..layout.tidy import LayoutNode

COLLAPSED_GLYPH = "+"
EXPANDED_GLYPH = "–"


@dataclass(frozen=True)
class TableRow:
    id: str
    label: str
    depth: int
    indent: int
    has_children: bool
    collapsed: bool
    value_text: str = ""
    sparkline: Optional[float] = None

    @property
    def glyph(self) -> str:
        if not self.has_children:
            return ""
        return COLLAPSED_GLYPH if self.collapsed else EXPANDED_GLYPH


def _is_number(value: Scalar) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_value(value: Scalar) -> str:
    """
    Render a measure for display.

    Numbers get thousands separators and at most three decimals; None is
    blank; anything else is shown as-is.
    """
    if value is None:
        return ""
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return str(value)
        if float(value).is_integer():
            return f"{int(value):,}"
        return f"{value:,.3f}".rstrip("0").rstrip(".")
    return str(value)


def normalize_sparkline(value: Scalar, bounds: Optional[Tuple[float, float]]) -> Optional[float]:
    """Map a numeric sparkline value into [0, 1]; a flat range maps to 1."""
    if bounds is None or not _is_number(value) or not math.isfinite(value):
        return None
    low, high = bounds
    span = high - low
    if span == 0:
        return 1.0
    return (value - low) / span


def build_table_rows(
    nodes: Sequence[LayoutNode],
    children: Mapping[str, Sequence[str]],
    collapsed: AbstractSet[str],
    sparkline_bounds: Optional[Tuple[float, float]] = None,
) -> List[TableRow]:
    """
    Project layout nodes (already in display order) onto table rows.

    `children` is the full-data Children Index, so a collapsed node still
    shows its expand glyph.
    """
    return [
        TableRow(
            id=node.id,
            label=node.label,
            depth=node.depth,
            indent=TABLE_BASE_INDENT + node.depth * TABLE_INDENT_PER_LEVEL,
            has_children=bool(children.get(node.id)),
            collapsed=node.id in collapsed,
            value_text=format_value(node.value),
            sparkline=normalize_sparkline(node.sparkline, sparkline_bounds),
        )
        for node in nodes
    ]
