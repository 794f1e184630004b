"""
hierflow - interactive hierarchy layout engine.

Turns flat parent/child rows into a filtered, collapsible tidy tree (or an
indented table) and tracks the pan/zoom, focus and selection state a host
needs to render and interact with it.

Key Components:
- core: Rows, the Children Index, filters, visibility, hierarchy construction
- layout: Tidy-tree positions, view transform math, hit testing
- view: Immutable view state, the recomputation pipeline, HierarchyView

Usage:
    from hierflow import HierarchyView, Viewport

    view = HierarchyView(viewport=Viewport(800, 600))
    view.update([{"id": "A"}, {"id": "B", "parent_id": "A"}])
    view.set_search_query("B")
"""

__version__ = "0.1.0"

from .config import Orientation, ViewMode, ViewSettings, load_settings
from .core.types import Outcome, Row, StructuralError, StructuralErrorKind
from .layout.viewport import Viewport, ViewTransform
from .view.controller import HierarchyView
from .view.pipeline import Snapshot

__all__ = [
    "__version__",
    "HierarchyView",
    "Orientation",
    "Outcome",
    "Row",
    "Snapshot",
    "StructuralError",
    "StructuralErrorKind",
    "ViewMode",
    "ViewSettings",
    "ViewTransform",
    "Viewport",
    "load_settings",
]
