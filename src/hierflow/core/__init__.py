"""Data model and the pure row-to-tree stages."""

from .filters import FilterState, apply_filters
from .hierarchy import Hierarchy, TreeNode, build_hierarchy, stratify
from .index import FilterOptions, RowStore, build_children_index, build_filter_options, parse_rows
from .result import Err, Ok, Result
from .types import NodeKind, Outcome, Row, StructuralError, StructuralErrorKind
from .visibility import compute_visibility, compute_visible_rows

__all__ = [
    "Err",
    "FilterOptions",
    "FilterState",
    "Hierarchy",
    "NodeKind",
    "Ok",
    "Outcome",
    "Result",
    "Row",
    "RowStore",
    "StructuralError",
    "StructuralErrorKind",
    "TreeNode",
    "apply_filters",
    "build_children_index",
    "build_filter_options",
    "build_hierarchy",
    "compute_visibility",
    "compute_visible_rows",
    "parse_rows",
    "stratify",
]
