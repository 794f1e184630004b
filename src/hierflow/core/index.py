"""
Row ingestion and the Children Index.

This module turns host records into Rows, maintains the parent -> children
adjacency for the full row set, and implements the drill-refresh cache:
when the host re-delivers a strict subset of the rows it delivered before,
the cached full hierarchy is kept and only the measure fields are overlaid,
so collapse and filter context survive a server-side partial refresh.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from pydantic import ValidationError

from .types import Row

logger = logging.getLogger(__name__)

ChildrenIndex = Dict[str, Tuple[str, ...]]

LABEL_SEPARATOR = " / "


def build_children_index(rows: Iterable[Row]) -> ChildrenIndex:
    """
    Build the parent -> ordered children mapping in one pass.

    Rows without a parent id contribute no entry. Child order follows
    row order.
    """
    children: Dict[str, List[str]] = defaultdict(list)
    for row in rows:
        if not row.parent_id:
            continue
        children[row.parent_id].append(row.id)
    return {parent: tuple(kids) for parent, kids in children.items()}


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def parse_rows(
    records: Iterable[Mapping[str, Any]],
    id_key: str = "id",
    parent_key: str = "parent_id",
    field_keys: Sequence[str] = (),
) -> List[Row]:
    """
    Convert raw host records into Rows.

    Blank ids are skipped. Blank parent ids become None. The label is the
    non-empty values of `field_keys` joined with " / ", falling back to
    the id. A `highlight` or `sparkline_highlight` entry, when present and
    not None, replaces the corresponding measure. Records whose value,
    sparkline or tooltip is not a scalar are skipped with a warning.

    Args:
        records: Mappings delivered by the host.
        id_key: Key holding the node id.
        parent_key: Key holding the parent id.
        field_keys: Keys whose values make up the display label.

    Returns:
        List[Row]: Rows in input order.
    """
    rows: List[Row] = []
    skipped = 0
    rejected = 0

    for record in records:
        node_id = _clean(record.get(id_key))
        if not node_id:
            skipped += 1
            continue

        parent_id = _clean(record.get(parent_key)) or None

        if field_keys:
            parts = [_clean(record.get(k)) for k in field_keys]
            label = LABEL_SEPARATOR.join(p for p in parts if p) or node_id
        else:
            label = _clean(record.get("label")) or node_id

        value = record.get("value")
        if record.get("highlight") is not None:
            value = record["highlight"]
        sparkline = record.get("sparkline")
        if record.get("sparkline_highlight") is not None:
            sparkline = record["sparkline_highlight"]

        tag = record.get("dropdown_tag", record.get("dropdown"))

        try:
            rows.append(Row(
                id=node_id,
                parent_id=parent_id,
                label=label,
                value=value,
                sparkline=sparkline,
                tooltip=record.get("tooltip"),
                dropdown_tag=None if tag is None else str(tag),
                identity=record.get("identity"),
            ))
        except ValidationError as e:
            rejected += 1
            logger.debug(f"Rejected record {node_id!r}: {e.error_count()} invalid field(s)")

    if skipped:
        logger.debug(f"Skipped {skipped} record(s) with a blank id")
    if rejected:
        logger.warning(f"Skipped {rejected} record(s) with non-scalar value, sparkline or tooltip")

    return rows


def top_ancestor(node_id: str, by_id: Mapping[str, Row]) -> str:
    """Walk parent links until the parent is missing from `by_id`."""
    current = node_id
    seen: Set[str] = {current}
    while True:
        row = by_id.get(current)
        parent_id = row.parent_id if row else None
        if not parent_id or parent_id not in by_id or parent_id in seen:
            return current
        seen.add(parent_id)
        current = parent_id


def can_reuse_cache(cached_ids: Set[str], incoming: Sequence[Row]) -> bool:
    """
    Check whether an incoming row set is a strict subset of the cache.

    A refresh that adds any id the cache does not know (even while
    dropping others) does not qualify, and neither does one with repeated
    ids: those must reach hierarchy construction to be reported.
    """
    incoming_ids = {row.id for row in incoming}
    if len(incoming_ids) != len(incoming):
        return False
    if not cached_ids or len(incoming_ids) >= len(cached_ids):
        return False
    return incoming_ids <= cached_ids


def expand_drill_rows(
    incoming: Sequence[Row],
    full_rows: Sequence[Row],
    full_index: ChildrenIndex,
) -> List[Row]:
    """
    Expand a drilled subset back out to its full hierarchy.

    Every incoming row is walked up to its topmost cached ancestor and all
    descendants of those tops are included in cached order. Incoming rows
    overlay their measure fields and identity; cached rows absent from the
    subset lose their measures.
    """
    if not incoming:
        return []

    full_by_id = {row.id: row for row in full_rows}
    incoming_by_id = {row.id: row for row in incoming}

    tops = {top_ancestor(row.id, full_by_id) for row in incoming}

    include: Set[str] = set()
    stack = list(tops)
    while stack:
        node_id = stack.pop()
        if node_id in include:
            continue
        include.add(node_id)
        stack.extend(full_index.get(node_id, ()))

    expanded: List[Row] = []
    for row in full_rows:
        if row.id not in include:
            continue
        fresh = incoming_by_id.get(row.id)
        if fresh is None:
            expanded.append(row.with_scalars(None, None, None))
        else:
            expanded.append(row.with_scalars(fresh.value, fresh.sparkline, fresh.tooltip, fresh.identity))
    return expanded


@dataclass(frozen=True)
class FilterOptions:
    """Sorted choices offered by the three dropdown filters."""
    node_ids: Tuple[str, ...] = ()
    parent_ids: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()

    @property
    def has_tags(self) -> bool:
        return bool(self.tags)


def _sort_key(value: str) -> Tuple[str, str]:
    return (value.casefold(), value)


def build_filter_options(rows: Iterable[Row]) -> FilterOptions:
    ids: Set[str] = set()
    parents: Set[str] = set()
    tags: Set[str] = set()
    for row in rows:
        ids.add(row.id)
        if row.parent_id:
            parents.add(row.parent_id)
        if row.dropdown_tag:
            tags.add(row.dropdown_tag)
    return FilterOptions(
        node_ids=tuple(sorted(ids, key=_sort_key)),
        parent_ids=tuple(sorted(parents, key=_sort_key)),
        tags=tuple(sorted(tags, key=_sort_key)),
    )


def sparkline_range(rows: Iterable[Row]) -> Optional[Tuple[float, float]]:
    """Min and max of the finite numeric sparkline values, if any."""
    values = [
        float(row.sparkline) for row in rows
        if isinstance(row.sparkline, (int, float))
        and not isinstance(row.sparkline, bool)
        and math.isfinite(row.sparkline)
    ]
    if not values:
        return None
    return (min(values), max(values))


@dataclass
class RowStore:
    """
    Holds the working row set and its Children Index across refreshes.

    `full_rows` is the last complete row set; `rows` is what the filter
    pipeline works on (equal to `full_rows` unless a drill refresh
    expanded a subset).
    """
    full_rows: List[Row] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    children: ChildrenIndex = field(default_factory=dict)
    reused_cache: bool = False

    def ingest(self, incoming: Sequence[Row], allow_reuse: bool = True) -> List[Row]:
        """
        Replace or refine the working rows with a fresh delivery.

        Args:
            incoming: The rows the host just delivered.
            allow_reuse: Whether the host marks this delivery as a
                filtered refinement eligible for cache reuse.

        Returns:
            List[Row]: The new working rows.
        """
        incoming = list(incoming)
        # An empty delivery keeps full_rows, so a later subset still expands
        # against the last complete row set.
        if not incoming:
            self.rows = []
            self.reused_cache = False
            return self.rows

        cached_ids = {row.id for row in self.full_rows}
        self.reused_cache = allow_reuse and can_reuse_cache(cached_ids, incoming)

        if self.reused_cache:
            self.rows = expand_drill_rows(incoming, self.full_rows, self.children)
            logger.debug(
                f"Drill refresh: {len(incoming)} rows expanded to {len(self.rows)} "
                f"of {len(self.full_rows)} cached"
            )
        else:
            self.full_rows = incoming
            self.children = build_children_index(incoming)
            self.rows = incoming
            logger.debug(f"Indexed {len(incoming)} rows, {len(self.children)} parents")

        return self.rows

    def has_children(self, node_id: str) -> bool:
        return bool(self.children.get(node_id))

    def clear(self) -> None:
        self.full_rows = []
        self.rows = []
        self.children = {}
        self.reused_cache = False

    @property
    def option_rows(self) -> List[Row]:
        """Rows the filter option lists are built from."""
        return self.full_rows if self.full_rows else self.rows
