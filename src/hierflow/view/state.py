"""
Immutable view state.

Everything the user can change between recomputations (filters, collapse
set, transform, focus, selection and view mode) lives in one frozen
ViewState. Each transition returns a new value; nothing is patched in
place, so any earlier state can be kept around and restored.
"""

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Optional, Sequence

from ..config import ViewMode
from ..core.filters import FilterState
from ..layout.viewport import ViewTransform


@dataclass(frozen=True)
class ViewState:
    filters: FilterState = field(default_factory=FilterState)
    collapsed: FrozenSet[str] = frozenset()
    transform: ViewTransform = field(default_factory=ViewTransform)
    focused_id: Optional[str] = None
    selected_ids: FrozenSet[str] = frozenset()
    view_mode: ViewMode = ViewMode.TREE
    user_set_view: bool = False

    # --- Filters ---

    def with_filter(self, **changes) -> "ViewState":
        """
        Return a state with some filter values replaced.

        Values go through FilterState validation, so a blank string
        clears a dropdown filter and the search query is trimmed.
        """
        filters = FilterState(**{**self.filters.model_dump(), **changes})
        if filters == self.filters:
            return self
        return replace(self, filters=filters)

    def with_filters(self, filters: FilterState) -> "ViewState":
        return self if filters == self.filters else replace(self, filters=filters)

    # --- Collapse ---

    def toggle_collapsed(self, node_id: str) -> "ViewState":
        if node_id in self.collapsed:
            return replace(self, collapsed=self.collapsed - {node_id})
        return replace(self, collapsed=self.collapsed | {node_id})

    def collapse(self, node_ids: Iterable[str]) -> "ViewState":
        return replace(self, collapsed=frozenset(node_ids))

    def expand_all(self) -> "ViewState":
        return replace(self, collapsed=frozenset())

    # --- Transform ---

    def with_transform(self, transform: ViewTransform) -> "ViewState":
        return replace(self, transform=transform)

    # --- Focus & selection ---

    def focus(self, node_id: Optional[str]) -> "ViewState":
        return replace(self, focused_id=node_id)

    def select(self, node_id: str, additive: bool = False) -> "ViewState":
        """Select one node; `additive` toggles its membership instead."""
        if not additive:
            return replace(self, selected_ids=frozenset({node_id}))
        if node_id in self.selected_ids:
            return replace(self, selected_ids=self.selected_ids - {node_id})
        return replace(self, selected_ids=self.selected_ids | {node_id})

    def clear_selection(self) -> "ViewState":
        return replace(self, selected_ids=frozenset(), focused_id=None)

    def reconcile_focus(self, ordered_ids: Sequence[str]) -> "ViewState":
        """
        Re-resolve focus and selection against a new visible list.

        Focus stays on its node when that node is still listed, otherwise
        it moves to the first entry (or None for an empty list). Selected
        ids that are no longer listed are dropped.
        """
        if not ordered_ids:
            focused = None
        elif self.focused_id in ordered_ids:
            focused = self.focused_id
        else:
            focused = ordered_ids[0]
        present = set(ordered_ids)
        selected = frozenset(i for i in self.selected_ids if i in present)
        if focused == self.focused_id and selected == self.selected_ids:
            return self
        return replace(self, focused_id=focused, selected_ids=selected)

    # --- View mode ---

    def with_view_mode(self, mode: ViewMode, user: bool = True) -> "ViewState":
        return replace(self, view_mode=mode, user_set_view=self.user_set_view or user)
