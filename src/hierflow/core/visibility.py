"""
Collapse-aware visibility.

A node is visible when a depth-first walk from the filtered roots reaches
it without passing through a collapsed node's children.
"""

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, List, Sequence, Set

from .index import ChildrenIndex
from .types import Row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Visibility:
    """
    Visible rows in original order.

    `unreachable_ids` lists filtered rows no root reaches even with every
    branch expanded; only a parent cycle produces these.
    """
    rows: List[Row] = field(default_factory=list)
    unreachable_ids: List[str] = field(default_factory=list)

    @property
    def ids(self) -> Set[str]:
        return {row.id for row in self.rows}


def find_roots(rows: Sequence[Row]) -> List[Row]:
    """Rows whose parent is missing or not part of `rows`."""
    ids = {row.id for row in rows}
    return [row for row in rows if not row.parent_id or row.parent_id not in ids]


def compute_visibility(
    rows: Sequence[Row],
    children: ChildrenIndex,
    collapsed: AbstractSet[str],
) -> Visibility:
    """
    Compute the visible subset of already filtered rows.

    Args:
        rows: Output of the filter pipeline.
        children: The Children Index of the full row set.
        collapsed: Ids whose descendants are hidden.

    Returns:
        Visibility: Visible rows (row order preserved) and unreachable ids.
    """
    present = {row.id for row in rows}
    visible: Set[str] = set()
    reached: Set[str] = set()

    # (node id, hidden under a collapsed ancestor)
    stack = [(row.id, False) for row in reversed(find_roots(rows))]
    while stack:
        node_id, hidden = stack.pop()
        if node_id in reached and (hidden or node_id in visible):
            continue
        reached.add(node_id)
        if not hidden:
            visible.add(node_id)

        hide_children = hidden or node_id in collapsed
        for child in reversed(children.get(node_id, ())):
            if child in present:
                stack.append((child, hide_children))

    unreachable = [row.id for row in rows if row.id not in reached]
    if unreachable:
        logger.warning(f"{len(unreachable)} row(s) unreachable from any root (parent cycle)")

    return Visibility(
        rows=[row for row in rows if row.id in visible],
        unreachable_ids=unreachable,
    )


def compute_visible_rows(
    rows: Sequence[Row],
    children: ChildrenIndex,
    collapsed: AbstractSet[str],
) -> List[Row]:
    """Shortcut returning only the visible rows."""
    return compute_visibility(rows, children, collapsed).rows
