"""
The recomputation entry point.

recompute() runs filters, visibility, hierarchy construction, layout and
the table projection for one ViewState and returns a Snapshot. Structural
problems with the data come back as Outcome.INVALID; nothing in here
raises for bad input rows.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import ViewSettings
from ..core.filters import apply_filters
from ..core.hierarchy import build_hierarchy
from ..core.index import ChildrenIndex, sparkline_range
from ..core.result import Err
from ..core.types import Outcome, Row, StructuralError, StructuralErrorKind
from ..core.visibility import compute_visibility
from ..layout.hit_test import HitRegion, build_regions
from ..layout.tidy import LayoutNode, Link, compute_layout
from .state import ViewState
from .table import TableRow, build_table_rows

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "No matches."
INVALID_MESSAGE = "Invalid hierarchy: duplicates, cycles, or missing parents."


@dataclass(frozen=True)
class Snapshot:
    """
    Everything a host renders for one recomputation.

    Only READY snapshots carry nodes; EMPTY, NO_DATA and INVALID ones have
    empty node, link, table and region lists.
    """
    outcome: Outcome
    nodes: List[LayoutNode] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    table_rows: List[TableRow] = field(default_factory=list)
    children: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    regions: List[HitRegion] = field(default_factory=list)
    message: str = ""
    error: Optional[StructuralError] = None

    @property
    def is_ready(self) -> bool:
        return self.outcome is Outcome.READY

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def node(self, node_id: str) -> Optional[LayoutNode]:
        for candidate in self.nodes:
            if candidate.id == node_id:
                return candidate
        return None


def _invalid(err: Err) -> Snapshot:
    return Snapshot(outcome=Outcome.INVALID, message=INVALID_MESSAGE, error=err.error)


def recompute(
    rows: Sequence[Row],
    children: ChildrenIndex,
    state: ViewState,
    settings: ViewSettings,
) -> Snapshot:
    """
    Derive the visible tree for the current rows and view state.

    Args:
        rows: Working rows from the RowStore.
        children: Children Index of the full row set.
        state: Filters and collapse set to apply.
        settings: Layout settings for this pass.

    Returns:
        Snapshot: READY with nodes, EMPTY when filters exclude every row,
            NO_DATA without rows, or INVALID with the StructuralError.
    """
    if not rows:
        return Snapshot(outcome=Outcome.NO_DATA)

    filtered = apply_filters(rows, state.filters, children)
    visibility = compute_visibility(filtered, children, state.collapsed)

    if visibility.unreachable_ids:
        return _invalid(Err.structural(
            StructuralErrorKind.CYCLE, visibility.unreachable_ids, "rows unreachable from any root",
        ))

    if not visibility.rows:
        message = NO_MATCHES_MESSAGE if state.filters.is_active else ""
        return Snapshot(outcome=Outcome.EMPTY, message=message)

    result = build_hierarchy(visibility.rows)
    if isinstance(result, Err):
        return _invalid(result)

    layout_settings = settings.layout
    layout = compute_layout(result.value, layout_settings)
    regions = build_regions(layout.nodes, children, layout_settings.card_width, layout_settings.card_height)
    table_rows = build_table_rows(layout.nodes, children, state.collapsed, sparkline_range(rows))

    logger.debug(f"Recomputed: {len(layout.nodes)} visible of {len(rows)} rows")
    return Snapshot(
        outcome=Outcome.READY,
        nodes=layout.nodes,
        links=layout.links,
        table_rows=table_rows,
        children=layout.children,
        regions=regions,
    )
