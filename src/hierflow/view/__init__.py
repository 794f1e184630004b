from .controller import HierarchyView
from .pipeline import Snapshot, recompute
from .state import ViewState
from .table import TableRow

__all__ = ["HierarchyView", "Snapshot", "TableRow", "ViewState", "recompute"]
