"""
Hierarchy construction.

Turns a flat visible row set into a single-rooted tree stored as an
arena of TreeNode records addressed by index. When the rows have zero or
several roots, a synthetic root node (NodeKind.SYNTHETIC, no row) is
inserted above them so the layout always sees one connected tree.

Structural problems (duplicate ids, dangling parents, cycles) are
returned as Err(StructuralError) rather than raised.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import rustworkx as rx

from .result import Err, Ok, Result
from .types import NodeKind, Row, StructuralErrorKind
from .visibility import find_roots

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreeNode:
    """One arena slot. `parent` and `children` are arena indices."""
    index: int
    kind: NodeKind
    row: Optional[Row]
    parent: Optional[int]
    children: Tuple[int, ...]
    depth: int

    @property
    def is_synthetic(self) -> bool:
        return self.kind is NodeKind.SYNTHETIC

    @property
    def id(self) -> Optional[str]:
        return self.row.id if self.row is not None else None


@dataclass(frozen=True)
class Hierarchy:
    """
    A single-rooted tree in pre-order; the root is always index 0.
    """
    nodes: Tuple[TreeNode, ...]

    @property
    def root(self) -> TreeNode:
        return self.nodes[0]

    @property
    def has_synthetic_root(self) -> bool:
        return bool(self.nodes) and self.nodes[0].is_synthetic

    @property
    def depth_offset(self) -> int:
        """Subtracted from tree depth so real roots report depth 0."""
        return 1 if self.has_synthetic_root else 0

    def __len__(self) -> int:
        return len(self.nodes)

    def real_nodes(self) -> Iterator[TreeNode]:
        return (node for node in self.nodes if not node.is_synthetic)

    def children_of(self, index: int) -> List[TreeNode]:
        return [self.nodes[i] for i in self.nodes[index].children]


HierarchyResult = Result[Hierarchy]


def _find_cycle_members(rows: Sequence[Row], edges: List[Tuple[int, int]]) -> List[str]:
    graph = rx.PyDiGraph()
    graph.add_nodes_from(range(len(rows)))
    graph.add_edges_from_no_data(edges)
    if rx.is_directed_acyclic_graph(graph):
        return []

    members: List[int] = []
    for component in rx.strongly_connected_components(graph):
        if len(component) > 1 or graph.has_edge(component[0], component[0]):
            members.extend(component)
    return [rows[i].id for i in sorted(members)]


def _assemble(
    rows: Sequence[Row],
    parent_refs: Sequence[Optional[str]],
    synthetic: bool,
) -> HierarchyResult:
    index_of: Dict[str, int] = {}
    duplicates: List[str] = []
    for i, row in enumerate(rows):
        if row.id in index_of:
            if row.id not in duplicates:
                duplicates.append(row.id)
        else:
            index_of[row.id] = i
    if duplicates:
        return Err.structural(StructuralErrorKind.DUPLICATE_ID, duplicates, "duplicate node ids")

    missing = [
        row.id for row, ref in zip(rows, parent_refs)
        if ref is not None and ref not in index_of
    ]
    if missing:
        return Err.structural(StructuralErrorKind.MISSING_PARENT, missing, "parent id not found")

    tops = [i for i, ref in enumerate(parent_refs) if ref is None]
    if not synthetic:
        if not tops:
            return Err.structural(StructuralErrorKind.NO_ROOT, [], "no root")
        if len(tops) > 1:
            return Err.structural(StructuralErrorKind.MULTIPLE_ROOTS, [rows[i].id for i in tops], "multiple roots")

    edges = [(index_of[ref], i) for i, ref in enumerate(parent_refs) if ref is not None]
    cycle = _find_cycle_members(rows, edges)
    if cycle:
        return Err.structural(StructuralErrorKind.CYCLE, cycle, "cycle")

    child_lists: List[List[int]] = [[] for _ in rows]
    for parent, child in edges:
        child_lists[parent].append(child)

    # Pre-order walk; row slots are mapped to arena slots as they are visited.
    arena: List[Optional[TreeNode]] = []
    pending: List[Tuple[Optional[int], Optional[int], int]] = []
    if synthetic:
        pending.append((None, None, 0))
    else:
        pending.append((tops[0], None, 0))

    slot_children: Dict[int, List[int]] = {}
    order: List[Tuple[Optional[int], Optional[int], int]] = []
    while pending:
        row_index, parent_slot, depth = pending.pop()
        slot = len(order)
        order.append((row_index, parent_slot, depth))
        slot_children[slot] = []
        if parent_slot is not None:
            slot_children[parent_slot].append(slot)
        kids = tops if row_index is None else child_lists[row_index]
        for kid in reversed(kids):
            pending.append((kid, slot, depth + 1))

    for slot, (row_index, parent_slot, depth) in enumerate(order):
        arena.append(TreeNode(
            index=slot,
            kind=NodeKind.SYNTHETIC if row_index is None else NodeKind.REAL,
            row=None if row_index is None else rows[row_index],
            parent=parent_slot,
            children=tuple(slot_children[slot]),
            depth=depth,
        ))

    return Ok(Hierarchy(nodes=tuple(arena)))


def stratify(rows: Sequence[Row]) -> HierarchyResult:
    """
    Build a tree from rows that must contain exactly one root.

    Every non-null parent id must resolve to another row.
    """
    return _assemble(rows, [row.parent_id for row in rows], synthetic=False)


def build_hierarchy(rows: Sequence[Row]) -> HierarchyResult:
    """
    Build a single-rooted tree from a visible row set.

    Roots are recomputed among `rows`: a row whose parent is missing from
    the set becomes a root. With exactly one root the tree is built
    directly, otherwise a synthetic root is inserted above all of them.

    Returns:
        Result: Ok(Hierarchy) or Err(StructuralError).
    """
    ids = {row.id for row in rows}
    parent_refs = [
        row.parent_id if row.parent_id and row.parent_id in ids else None
        for row in rows
    ]
    roots = find_roots(rows)
    synthetic = len(roots) != 1
    if synthetic:
        logger.debug(f"Inserting synthetic root above {len(roots)} root(s)")
    return _assemble(rows, parent_refs, synthetic=synthetic)
