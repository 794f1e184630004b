"""
Tidy-tree layout.

Implements the Buchheim, Jünger and Leipert linear-time refinement of the
Walker / Reingold-Tilford algorithm. Siblings are separated by one node
footprint, cousins by two, parents are centred over their children and the
root sits at x = 0. Every walk is iterative so very deep hierarchies never
hit the interpreter's recursion limit.

Positions come out in layout space; LR orientation is applied by swapping
x and y afterwards.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..config import LayoutSettings, Orientation
from ..core.hierarchy import Hierarchy
from ..core.types import Scalar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutNode:
    """A visible, positioned node. Never mutated after layout."""
    id: str
    label: str
    x: float
    y: float
    depth: int
    parent_id: Optional[str] = None
    value: Scalar = None
    sparkline: Scalar = None
    tooltip: Scalar = None
    identity: Any = None


@dataclass(frozen=True)
class Link:
    source: LayoutNode
    target: LayoutNode


@dataclass(frozen=True)
class LayoutResult:
    """
    Output of one layout pass.

    `nodes` are in pre-order (draw order); `children` maps a visible node
    id to the ids of its visible children.
    """
    nodes: List[LayoutNode] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    children: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


class _Walker:
    """Per-node bookkeeping of the tidy-tree walks."""

    __slots__ = ("index", "parent", "children", "A", "a", "z", "m", "c", "s", "t", "i")

    def __init__(self, index: int, i: int):
        self.index = index
        self.parent: Optional["_Walker"] = None
        self.children: Optional[List["_Walker"]] = None
        self.A: Optional["_Walker"] = None  # default ancestor
        self.a: "_Walker" = self  # ancestor
        self.z = 0.0  # prelim
        self.m = 0.0  # mod
        self.c = 0.0  # change
        self.s = 0.0  # shift
        self.t: Optional["_Walker"] = None  # thread
        self.i = i  # position among siblings


def _separation(a: _Walker, b: _Walker) -> float:
    return 1.0 if a.parent is b.parent else 2.0


def _next_left(v: _Walker) -> Optional[_Walker]:
    return v.children[0] if v.children else v.t


def _next_right(v: _Walker) -> Optional[_Walker]:
    return v.children[-1] if v.children else v.t


def _move_subtree(wm: _Walker, wp: _Walker, shift: float) -> None:
    change = shift / (wp.i - wm.i)
    wp.c -= change
    wp.s += shift
    wm.c += change
    wp.z += shift
    wp.m += shift


def _execute_shifts(v: _Walker) -> None:
    shift = 0.0
    change = 0.0
    for w in reversed(v.children):
        w.z += shift
        w.m += shift
        change += w.c
        shift += w.s + change


def _next_ancestor(vim: _Walker, v: _Walker, ancestor: _Walker) -> _Walker:
    return vim.a if vim.a.parent is v.parent else ancestor


def _apportion(v: _Walker, w: Optional[_Walker], ancestor: _Walker) -> _Walker:
    if w is None:
        return ancestor

    vip = vop = v
    vim = w
    vom = v.parent.children[0]
    sip = vip.m
    sop = vop.m
    sim = vim.m
    som = vom.m

    while True:
        vim = _next_right(vim)
        vip = _next_left(vip)
        if vim is None or vip is None:
            break
        vom = _next_left(vom)
        vop = _next_right(vop)
        vop.a = v
        shift = vim.z + sim - vip.z - sip + _separation(vim, vip)
        if shift > 0:
            _move_subtree(_next_ancestor(vim, v, ancestor), v, shift)
            sip += shift
            sop += shift
        sim += vim.m
        sip += vip.m
        som += vom.m
        sop += vop.m

    if vim is not None and _next_right(vop) is None:
        vop.t = vim
        vop.m += sim - sop
    if vip is not None and _next_left(vom) is None:
        vom.t = vip
        vom.m += sip - som
        ancestor = v
    return ancestor


def _first_walk(v: _Walker) -> None:
    siblings = v.parent.children
    w = siblings[v.i - 1] if v.i else None
    if v.children:
        _execute_shifts(v)
        midpoint = (v.children[0].z + v.children[-1].z) / 2
        if w is not None:
            v.z = w.z + _separation(v, w)
            v.m = v.z - midpoint
        else:
            v.z = midpoint
    elif w is not None:
        v.z = w.z + _separation(v, w)
    v.parent.A = _apportion(v, w, v.parent.A or siblings[0])


def _build_walkers(hierarchy: Hierarchy) -> Tuple[_Walker, List[_Walker]]:
    """Mirror the hierarchy as walkers; returns the root and right-to-left pre-order."""
    root = _Walker(0, 0)
    order: List[_Walker] = []
    stack = [root]
    while stack:
        walker = stack.pop()
        order.append(walker)
        kids = hierarchy.nodes[walker.index].children
        if kids:
            walker.children = [_Walker(child, i) for i, child in enumerate(kids)]
            for child in walker.children:
                child.parent = walker
                stack.append(child)

    sentinel = _Walker(-1, 0)
    sentinel.children = [root]
    root.parent = sentinel
    return root, order


def tidy_positions(hierarchy: Hierarchy, dx: float, dy: float) -> List[Tuple[float, float]]:
    """
    Compute (x, y) for every arena slot of `hierarchy`.

    Args:
        hierarchy: A single-rooted tree.
        dx: Breadth of one node footprint.
        dy: Distance between levels.

    Returns:
        List of positions indexed like `hierarchy.nodes`.
    """
    positions: List[Tuple[float, float]] = [(0.0, 0.0)] * len(hierarchy)
    if not len(hierarchy):
        return positions

    root, order = _build_walkers(hierarchy)

    # Reversing a right-to-left pre-order gives a left-to-right post-order.
    for walker in reversed(order):
        _first_walk(walker)
    root.parent.m = -root.z

    for walker in order:
        walker.m += walker.parent.m
        x = walker.z + walker.parent.m
        depth = hierarchy.nodes[walker.index].depth
        positions[walker.index] = (x * dx, depth * dy)

    return positions


def compute_layout(hierarchy: Hierarchy, settings: LayoutSettings) -> LayoutResult:
    """
    Lay out a hierarchy and strip any synthetic root from the output.

    Returns:
        LayoutResult: Nodes in pre-order, links between real nodes and the
            visible child adjacency.
    """
    dx, dy = settings.node_size
    positions = tidy_positions(hierarchy, dx, dy)
    offset = hierarchy.depth_offset
    swap = settings.orientation == Orientation.LEFT_RIGHT

    nodes: List[LayoutNode] = []
    by_index: Dict[int, LayoutNode] = {}
    for tree_node in hierarchy.nodes:
        if tree_node.is_synthetic:
            continue
        x, y = positions[tree_node.index]
        if swap:
            x, y = y, x
        parent = hierarchy.nodes[tree_node.parent] if tree_node.parent is not None else None
        row = tree_node.row
        layout_node = LayoutNode(
            id=row.id,
            label=row.label,
            x=x,
            y=y,
            depth=tree_node.depth - offset,
            parent_id=parent.id if parent is not None else None,
            value=row.value,
            sparkline=row.sparkline,
            tooltip=row.tooltip,
            identity=row.identity,
        )
        nodes.append(layout_node)
        by_index[tree_node.index] = layout_node

    links: List[Link] = []
    children: Dict[str, Tuple[str, ...]] = {}
    for tree_node in hierarchy.nodes:
        if tree_node.is_synthetic or not tree_node.children:
            continue
        source = by_index[tree_node.index]
        kids = [by_index[i] for i in tree_node.children]
        children[source.id] = tuple(kid.id for kid in kids)
        links.extend(Link(source=source, target=kid) for kid in kids)

    logger.debug(f"Laid out {len(nodes)} nodes ({settings.orientation.value})")
    return LayoutResult(nodes=nodes, links=links, children=children)
