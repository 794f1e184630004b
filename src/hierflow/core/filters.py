"""
Filter Pipeline.

Every filter expands its direct matches to closure: the matched nodes,
their full ancestor chain and all of their descendants. A filtered view
is therefore always a connected sub-hierarchy, never an orphaned leaf.

Filters run in a fixed order (hierarchy -> parent -> dropdown -> search),
each on the previous stage's surviving rows, so combined filters
intersect.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Sequence, Set

from pydantic import BaseModel, ConfigDict, field_validator

from .index import ChildrenIndex, FilterOptions
from .types import Row

logger = logging.getLogger(__name__)


class FilterState(BaseModel):
    """The four independent filter predicates."""
    search_query: str = ""
    hierarchy_filter: Optional[str] = None
    parent_filter: Optional[str] = None
    dropdown_filter: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("search_query", mode="before")
    @classmethod
    def _trim_query(cls, value):
        return (value or "").strip()

    @field_validator("hierarchy_filter", "parent_filter", "dropdown_filter", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
        return value or None

    @property
    def is_active(self) -> bool:
        return bool(
            self.search_query
            or self.hierarchy_filter
            or self.parent_filter
            or self.dropdown_filter
        )

    def reconcile(self, options: FilterOptions) -> "FilterState":
        """Drop dropdown values that are no longer offered as options."""
        update = {}
        if self.hierarchy_filter and self.hierarchy_filter not in options.node_ids:
            update["hierarchy_filter"] = None
        if self.parent_filter and self.parent_filter not in options.parent_ids:
            update["parent_filter"] = None
        if self.dropdown_filter and self.dropdown_filter not in options.tags:
            update["dropdown_filter"] = None
        return self.model_copy(update=update) if update else self


# =========================================================================
# Closure helpers
# =========================================================================

def add_ancestors(node_id: str, by_id: Mapping[str, Row], include: Set[str]) -> None:
    """
    Add `node_id` and every ancestor present in `by_id` to `include`.

    The walk stops at the first parent missing from `by_id`, or when it
    would revisit a node.
    """
    current: Optional[str] = node_id
    while current and current in by_id and current not in include:
        include.add(current)
        current = by_id[current].parent_id


def add_descendants(
    start_ids: Iterable[str],
    children: ChildrenIndex,
    present: Set[str] | Mapping[str, Row],
    include: Set[str],
) -> None:
    """Add every descendant of `start_ids` that is present in the row set."""
    stack = list(start_ids)
    visited: Set[str] = set()
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        for child in children.get(node_id, ()):
            if child in present:
                include.add(child)
                stack.append(child)


def _keep(rows: Sequence[Row], include: Set[str]) -> List[Row]:
    return [row for row in rows if row.id in include]


# =========================================================================
# Filters
# =========================================================================

def apply_search_filter(rows: Sequence[Row], query: str, children: ChildrenIndex) -> List[Row]:
    """
    Keep rows whose label contains `query` plus their closure.

    Matching is a case-insensitive substring test. A blank query keeps
    every row; a query without matches keeps none.
    """
    q = (query or "").strip().lower()
    if not q:
        return list(rows)

    by_id = {row.id: row for row in rows}
    matches = [row.id for row in rows if q in (row.label or "").lower()]
    if not matches:
        return []

    include: Set[str] = set()
    for node_id in matches:
        add_ancestors(node_id, by_id, include)
    add_descendants(matches, children, by_id, include)
    return _keep(rows, include)


def filter_to_node_branch(rows: Sequence[Row], node_id: str, children: ChildrenIndex) -> List[Row]:
    """
    Scope the view to one node: its ancestors and its descendants.

    A node id that is not in the current rows leaves them unchanged.
    """
    by_id = {row.id: row for row in rows}
    if node_id not in by_id:
        return list(rows)

    include: Set[str] = set()
    add_ancestors(node_id, by_id, include)
    add_descendants([node_id], children, by_id, include)
    return _keep(rows, include)


def filter_to_parent_branch(rows: Sequence[Row], parent_id: str, children: ChildrenIndex) -> List[Row]:
    """
    Scope the view to one parent's children and their subtrees.

    The parent and its ancestors are kept when present. A parent with no
    children among the current rows leaves them unchanged, so picking an
    option never dead-ends on an empty view.
    """
    by_id = {row.id: row for row in rows}
    direct = [row.id for row in rows if row.parent_id == parent_id]
    if not direct:
        return list(rows)

    include: Set[str] = set(direct)
    if parent_id in by_id:
        add_ancestors(parent_id, by_id, include)
    add_descendants(direct, children, by_id, include)
    return _keep(rows, include)


def filter_to_dropdown_branch(rows: Sequence[Row], value: str, children: ChildrenIndex) -> List[Row]:
    """
    Scope the view to rows tagged (or labelled, or identified) by `value`.

    Each match is rooted at its parent when the parent is present, so the
    match's siblings under that parent remain visible; the closure is the
    root's ancestors plus the root's descendants.
    """
    by_id = {row.id: row for row in rows}
    roots: List[str] = []
    seen: Set[str] = set()
    for row in rows:
        tag = (row.dropdown_tag or "").strip()
        if tag != value and row.label != value and row.id != value:
            continue
        root = row.parent_id if row.parent_id and row.parent_id in by_id else row.id
        if root not in seen:
            seen.add(root)
            roots.append(root)

    if not roots:
        return []

    include: Set[str] = set()
    for root in roots:
        add_ancestors(root, by_id, include)
    add_descendants(roots, children, by_id, include)
    return _keep(rows, include)


def apply_filters(rows: Sequence[Row], state: FilterState, children: ChildrenIndex) -> List[Row]:
    """
    Run the full cascade: hierarchy, parent, dropdown, then search.
    """
    result = list(rows)
    if state.hierarchy_filter:
        result = filter_to_node_branch(result, state.hierarchy_filter, children)
    if state.parent_filter:
        result = filter_to_parent_branch(result, state.parent_filter, children)
    if state.dropdown_filter:
        result = filter_to_dropdown_branch(result, state.dropdown_filter, children)
    if state.search_query:
        result = apply_search_filter(result, state.search_query, children)

    if state.is_active:
        logger.debug(f"Filters kept {len(result)} of {len(rows)} rows")
    return result
