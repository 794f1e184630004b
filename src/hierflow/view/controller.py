"""
HierarchyView - the host-facing interaction surface.

The host feeds rows, settings and the viewport size through update() and
forwards user input (toolbar changes, pointer, wheel, keys) to the
mutators below. Each mutator swaps in a new ViewState and triggers only
the recomputation it needs:

    filter / search change     -> recompute + refit
    collapse-all / expand-all  -> recompute + refit
    single collapse toggle     -> recompute, toggled node kept in place
    pan / zoom                 -> transform only

Setters return True when they changed anything. Toolbar zoom and
collapse-all / expand-all are refused while settings hide those controls;
wheel and double-click zoom stay available.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from ..config import MAX_ZOOM_PERCENT, MIN_ZOOM_PERCENT, ZOOM_IN_FACTOR, ZOOM_OUT_FACTOR, ViewMode, ViewSettings
from ..core.index import FilterOptions, RowStore, build_filter_options, parse_rows
from ..core.types import Outcome, Row
from ..layout import viewport as vp
from ..layout.hit_test import Hit, hit_test
from ..layout.viewport import Viewport, ViewTransform
from .pipeline import Snapshot, recompute
from .state import ViewState

logger = logging.getLogger(__name__)

RowInput = Union[Row, Mapping[str, Any]]

NEXT_KEYS = {"ArrowDown", "ArrowRight"}
PREVIOUS_KEYS = {"ArrowUp", "ArrowLeft"}
SELECT_KEYS = {"Enter", " "}
EXPAND_KEYS = {"+", "="}
COLLAPSE_KEYS = {"-", "_"}


def _coerce_rows(rows: Iterable[RowInput]) -> List[Row]:
    rows = list(rows)
    if rows and all(isinstance(r, Row) for r in rows):
        return rows
    return parse_rows(r if isinstance(r, Mapping) else r.model_dump() for r in rows)


class HierarchyView:
    """
    Owns the row cache, the ViewState and the latest Snapshot.
    """

    def __init__(self, settings: Optional[ViewSettings] = None, viewport: Optional[Viewport] = None):
        self._settings = settings or ViewSettings()
        self._viewport = viewport or Viewport()
        self._store = RowStore()
        self._options = FilterOptions()
        self._state = ViewState(view_mode=self._settings.controls.default_view)
        self._snapshot = Snapshot(outcome=Outcome.NO_DATA)

    # =========================================================================
    # Read-only surface
    # =========================================================================

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def settings(self) -> ViewSettings:
        return self._settings

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def filter_options(self) -> FilterOptions:
        return self._options

    @property
    def transform(self) -> ViewTransform:
        return self._state.transform

    @property
    def zoom_label(self) -> str:
        return self._state.transform.label

    @property
    def store(self) -> RowStore:
        return self._store

    # =========================================================================
    # Data & settings
    # =========================================================================

    def update(
        self,
        rows: Iterable[RowInput],
        viewport: Optional[Viewport] = None,
        settings: Optional[ViewSettings] = None,
        allow_reuse: bool = True,
    ) -> Snapshot:
        """
        Accept a fresh delivery of rows and rebuild the view.

        Args:
            rows: Rows, or raw records parse_rows() understands.
            viewport: New viewport size, if it changed.
            settings: New settings, if they changed.
            allow_reuse: Whether a strict subset of the cached rows may be
                treated as a drill refresh.

        Returns:
            Snapshot: The new snapshot, already fitted to the viewport.
        """
        if viewport is not None:
            self._viewport = viewport
        if settings is not None:
            self._settings = settings

        self._store.ingest(_coerce_rows(rows), allow_reuse=allow_reuse)
        self._options = build_filter_options(self._store.option_rows)

        state = self._state.with_filters(self._state.filters.reconcile(self._options))
        state = self._resolve_view_mode(state)
        self._state = self._clear_hidden_filters(state)

        return self._refresh(auto_fit=True)

    def resize(self, viewport: Viewport) -> None:
        """Record a new viewport size and refit the current layout."""
        if viewport == self._viewport:
            return
        self._viewport = viewport
        self.fit_to_viewport()

    def apply_settings(self, settings: ViewSettings) -> None:
        """Apply new settings; hidden controls drop the filter they own."""
        self._settings = settings
        state = self._resolve_view_mode(self._state)
        self._state = self._clear_hidden_filters(state)
        self._refresh(auto_fit=True)

    def _resolve_view_mode(self, state: ViewState) -> ViewState:
        controls = self._settings.controls
        if state.user_set_view and controls.show_view_toggle:
            return state
        return state.with_view_mode(controls.default_view, user=False)

    def _clear_hidden_filters(self, state: ViewState) -> ViewState:
        controls = self._settings.controls
        changes = {}
        if not controls.show_search:
            changes["search_query"] = ""
        if not controls.show_hierarchy_filter:
            changes["hierarchy_filter"] = None
        if not controls.show_parent_filter:
            changes["parent_filter"] = None
        if not (controls.show_dropdown_filter and self._options.has_tags):
            changes["dropdown_filter"] = None
        return state.with_filter(**changes) if changes else state

    # =========================================================================
    # Recomputation
    # =========================================================================

    def _refresh(self, auto_fit: bool, anchor_id: Optional[str] = None) -> Snapshot:
        anchor_screen = None
        if anchor_id is not None:
            before = self._snapshot.node(anchor_id)
            if before is not None:
                anchor_screen = self._state.transform.to_screen(before.x, before.y)

        self._snapshot = recompute(self._store.rows, self._store.children, self._state, self._settings)

        state = self._state.reconcile_focus(self._focus_order())
        after = self._snapshot.node(anchor_id) if anchor_id is not None else None
        if anchor_screen is not None and after is not None:
            state = state.with_transform(vp.keep_stationary(state.transform, anchor_screen, after))
        elif auto_fit:
            state = state.with_transform(self._fitted(state.transform))
        self._state = state
        return self._snapshot

    def _fitted(self, current: ViewTransform) -> ViewTransform:
        layout = self._settings.layout
        return vp.fit_transform(
            self._snapshot.nodes, self._viewport, layout.card_width, layout.card_height, current,
        )

    def _focus_order(self) -> List[str]:
        if self._state.view_mode == ViewMode.TABLE:
            return [row.id for row in self._snapshot.table_rows]
        return self._snapshot.node_ids

    # =========================================================================
    # Filters
    # =========================================================================

    def _set_filter(self, **changes) -> bool:
        state = self._state.with_filter(**changes)
        if state is self._state:
            return False
        self._state = state
        self._refresh(auto_fit=True)
        return True

    def set_search_query(self, query: Optional[str]) -> bool:
        return self._set_filter(search_query=query or "")

    def set_hierarchy_filter(self, node_id: Optional[str]) -> bool:
        return self._set_filter(hierarchy_filter=node_id)

    def set_parent_filter(self, parent_id: Optional[str]) -> bool:
        return self._set_filter(parent_filter=parent_id)

    def set_dropdown_filter(self, value: Optional[str]) -> bool:
        return self._set_filter(dropdown_filter=value)

    # =========================================================================
    # Collapse
    # =========================================================================

    def toggle_collapse(self, node_id: str) -> bool:
        """
        Collapse or expand one node, keeping it fixed on screen.

        Nodes without children in the full row set are ignored.
        """
        if not self._store.has_children(node_id):
            return False
        self._state = self._state.toggle_collapsed(node_id)
        self._refresh(auto_fit=False, anchor_id=node_id)
        return True

    def collapse_all(self) -> bool:
        if not self._settings.controls.shows("collapse_expand"):
            return False
        self._state = self._state.collapse(self._store.children.keys())
        self._refresh(auto_fit=True)
        return True

    def expand_all(self) -> bool:
        if not self._settings.controls.shows("collapse_expand"):
            return False
        self._state = self._state.expand_all()
        self._refresh(auto_fit=True)
        return True

    # =========================================================================
    # Transform
    # =========================================================================

    def _set_transform(self, transform: ViewTransform) -> bool:
        if self._state.view_mode != ViewMode.TREE or transform == self._state.transform:
            return False
        self._state = self._state.with_transform(transform)
        return True

    def pan_by(self, dx: float, dy: float) -> bool:
        return self._set_transform(vp.pan(self._state.transform, dx, dy))

    def zoom_by(self, factor: float) -> bool:
        """Zoom about the viewport centre."""
        return self._set_transform(vp.zoom_by(self._state.transform, factor, self._viewport.center))

    def _zoom_controls_shown(self) -> bool:
        return self._settings.controls.shows("zoom")

    def zoom_in(self) -> bool:
        return self._zoom_controls_shown() and self.zoom_by(ZOOM_IN_FACTOR)

    def zoom_out(self) -> bool:
        return self._zoom_controls_shown() and self.zoom_by(ZOOM_OUT_FACTOR)

    def zoom_to(self, percent: float) -> bool:
        if not self._zoom_controls_shown():
            return False
        scale = vp.clamp(percent, MIN_ZOOM_PERCENT, MAX_ZOOM_PERCENT) / 100
        return self._set_transform(vp.zoom_about(self._state.transform, scale, self._viewport.center))

    def zoom_to_percent_text(self, text: str) -> bool:
        """Apply direct zoom entry; text that is not a number is ignored."""
        if not self._zoom_controls_shown():
            return False
        scale = vp.parse_zoom_percent(text)
        if scale is None:
            return False
        return self._set_transform(vp.zoom_about(self._state.transform, scale, self._viewport.center))

    def wheel(self, delta_y: float, screen_x: float, screen_y: float) -> bool:
        factor = vp.wheel_factor(delta_y)
        return self._set_transform(vp.zoom_by(self._state.transform, factor, (screen_x, screen_y)))

    def fit_to_viewport(self) -> bool:
        if self._state.view_mode != ViewMode.TREE:
            return False
        return self._set_transform(self._fitted(self._state.transform))

    # =========================================================================
    # Pointer
    # =========================================================================

    def hit_test(self, screen_x: float, screen_y: float) -> Optional[Hit]:
        if self._state.view_mode != ViewMode.TREE:
            return None
        return hit_test(self._snapshot.regions, self._state.transform, screen_x, screen_y)

    def click(
        self,
        screen_x: float,
        screen_y: float,
        shift: bool = False,
        ctrl: bool = False,
        meta: bool = False,
    ) -> Optional[Hit]:
        """
        Handle a primary click.

        Shift-click is reserved for panning and ignored. A click on a
        collapse toggle focuses the node and toggles it. Any other hit
        focuses and selects the node; Ctrl/Meta toggles its membership
        in the selection. A click on empty canvas clears selection and
        focus.
        """
        if shift or self._state.view_mode != ViewMode.TREE:
            return None

        hit = self.hit_test(screen_x, screen_y)
        if hit is None:
            self._state = self._state.clear_selection()
            return None

        self._state = self._state.focus(hit.node.id)
        if hit.toggle_hit:
            self.toggle_collapse(hit.node.id)
            return hit

        self._state = self._state.select(hit.node.id, additive=ctrl or meta)
        return hit

    def double_click(self, screen_x: float, screen_y: float) -> bool:
        """Zoom towards the node under the pointer; toggles are ignored."""
        hit = self.hit_test(screen_x, screen_y)
        if hit is None or hit.toggle_hit:
            return False
        percent = self._settings.controls.double_click_zoom_percent
        return self._set_transform(vp.zoom_to_node(self._state.transform, hit.node, self._viewport, percent))

    # =========================================================================
    # Keyboard
    # =========================================================================

    def key(self, key: str) -> bool:
        """
        Handle a key press against the focus list.

        Returns:
            bool: True when the key was handled.
        """
        order = self._focus_order()
        if not order:
            return False

        idx = order.index(self._state.focused_id) if self._state.focused_id in order else 0

        if key in NEXT_KEYS:
            idx = min(len(order) - 1, idx + 1)
        elif key in PREVIOUS_KEYS:
            idx = max(0, idx - 1)
        elif key == "Home":
            idx = 0
        elif key == "End":
            idx = len(order) - 1
        elif key in SELECT_KEYS:
            self._state = self._state.focus(order[idx]).select(order[idx])
            return True
        elif key in EXPAND_KEYS:
            self._state = self._state.focus(order[idx])
            if order[idx] in self._state.collapsed:
                self.toggle_collapse(order[idx])
            return True
        elif key in COLLAPSE_KEYS:
            self._state = self._state.focus(order[idx])
            if order[idx] not in self._state.collapsed:
                self.toggle_collapse(order[idx])
            return True
        else:
            return False

        self._state = self._state.focus(order[idx])
        return True

    # =========================================================================
    # View mode
    # =========================================================================

    def set_view_mode(self, mode: ViewMode) -> bool:
        mode = ViewMode(mode)
        if mode == self._state.view_mode:
            return False
        self._state = self._state.with_view_mode(mode)
        self._state = self._state.reconcile_focus(self._focus_order())
        return True

    def selected_identities(self) -> Sequence[Any]:
        """Opaque identities of the selected nodes, for host callbacks."""
        return [node.identity for node in self._snapshot.nodes if node.id in self._state.selected_ids]
