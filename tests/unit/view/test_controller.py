"""Unit tests for HierarchyView, the host-facing interaction surface."""

import pytest

from hierflow.config import ControlSettings, ViewMode, ViewSettings
from hierflow.core.types import Outcome, StructuralErrorKind
from hierflow.layout.viewport import Viewport, ViewTransform
from hierflow.view.controller import HierarchyView

ALL_IDS = ["A", "B", "D", "C", "E", "F", "G"]


@pytest.fixture
def records():
    #   A        F
    #  / \       |
    # B   C      G
    # |   |
    # D   E
    return [
        {"id": "A", "identity": "sel-A"},
        {"id": "B", "parent_id": "A", "identity": "sel-B"},
        {"id": "C", "parent_id": "A"},
        {"id": "D", "parent_id": "B"},
        {"id": "E", "parent_id": "C"},
        {"id": "F"},
        {"id": "G", "parent_id": "F"},
    ]


@pytest.fixture
def view(records):
    v = HierarchyView(viewport=Viewport(800, 600))
    v.update(records)
    return v


def screen_of(view, node_id, dx=0.0, dy=0.0):
    node = view.snapshot.node(node_id)
    return view.transform.to_screen(node.x + dx, node.y + dy)


def toggle_point(view, node_id):
    # Centre of the 14px toggle inset 6px from the card's top-right corner.
    layout = view.settings.layout
    return screen_of(view, node_id, layout.card_width / 2 - 13, -layout.card_height / 2 + 13)


class TestUpdate:
    def test_initial_state(self):
        view = HierarchyView()
        assert view.snapshot.outcome is Outcome.NO_DATA
        assert view.transform == ViewTransform()
        assert view.zoom_label == "100%"

    def test_update_lays_out_and_fits(self, view):
        assert view.snapshot.outcome is Outcome.READY
        assert view.snapshot.node_ids == ALL_IDS
        assert view.transform != ViewTransform()
        assert view.state.focused_id == "A"

    def test_filter_options(self, view):
        assert view.filter_options.node_ids == ("A", "B", "C", "D", "E", "F", "G")
        assert view.filter_options.parent_ids == ("A", "B", "C", "F")

    def test_invalid_rows(self):
        view = HierarchyView(viewport=Viewport(800, 600))
        view.update([{"id": "A"}, {"id": "A"}])
        assert view.snapshot.outcome is Outcome.INVALID
        assert view.hit_test(400, 300) is None
        assert view.key("ArrowDown") is False

    def test_drill_refresh_keeps_context(self, view):
        view.toggle_collapse("C")
        view.update([{"id": "D", "parent_id": "B", "value": 5}])
        assert view.store.reused_cache
        assert view.snapshot.node_ids == ["A", "B", "D", "C"]
        assert view.state.collapsed == {"C"}
        assert view.snapshot.node("D").value == 5

    def test_repeated_ids_in_a_subset_are_invalid(self, view):
        view.update([{"id": "D", "parent_id": "B", "value": 1}, {"id": "D", "parent_id": "B", "value": 2}])
        assert view.store.reused_cache is False
        assert view.snapshot.outcome is Outcome.INVALID
        assert view.snapshot.error.kind is StructuralErrorKind.DUPLICATE_ID

    def test_non_scalar_measures_are_skipped(self):
        view = HierarchyView(viewport=Viewport(800, 600))
        view.update([{"id": "A", "value": [1, 2]}, {"id": "B", "sparkline": {"x": 1}}, {"id": "C"}])
        assert view.snapshot.outcome is Outcome.READY
        assert view.snapshot.node_ids == ["C"]

    def test_only_non_scalar_records_gives_no_data(self):
        view = HierarchyView(viewport=Viewport(800, 600))
        view.update([{"id": "A", "value": [1, 2]}])
        assert view.snapshot.outcome is Outcome.NO_DATA

    def test_stale_filter_is_reset(self, view):
        view.set_hierarchy_filter("D")
        view.update([{"id": "A"}, {"id": "B", "parent_id": "A"}, {"id": "Z", "parent_id": "A"}])
        assert view.state.filters.hierarchy_filter is None
        assert view.snapshot.node_ids == ["A", "B", "Z"]

    def test_resize_refits(self, view):
        before = view.transform
        view.resize(Viewport(400, 300))
        assert view.transform != before


class TestFilters:
    def test_search(self, view):
        assert view.set_search_query("D") is True
        assert view.snapshot.node_ids == ["A", "B", "D"]

    def test_unchanged_values_are_noops(self, view):
        assert view.set_search_query("") is False
        assert view.set_hierarchy_filter("") is False
        view.set_search_query("D")
        assert view.set_search_query(" D ") is False

    def test_search_then_collapse(self, view):
        view.set_search_query("D")
        view.toggle_collapse("B")
        assert view.snapshot.node_ids == ["A", "B"]
        assert view.state.filters.search_query == "D"

    def test_no_matches(self, view):
        view.set_search_query("zzz")
        assert view.snapshot.outcome is Outcome.EMPTY
        assert view.snapshot.message == "No matches."
        assert view.state.focused_id is None

    def test_parent_filter(self, view):
        view.set_parent_filter("C")
        assert view.snapshot.node_ids == ["A", "C", "E"]

    def test_filter_change_refits(self, view):
        view.pan_by(300, 300)
        panned = view.transform
        view.set_hierarchy_filter("F")
        assert view.transform != panned


class TestCollapse:
    def test_leaf_toggle_is_noop(self, view):
        snapshot = view.snapshot
        assert view.toggle_collapse("D") is False
        assert view.snapshot is snapshot

    def test_toggle_twice_restores(self, view):
        view.toggle_collapse("A")
        assert view.snapshot.node_ids == ["A", "F", "G"]
        view.toggle_collapse("A")
        assert view.snapshot.node_ids == ALL_IDS

    def test_toggled_node_stays_put(self, view):
        before = screen_of(view, "B")
        scale = view.transform.scale
        view.toggle_collapse("B")
        assert screen_of(view, "B") == pytest.approx(before)
        assert view.transform.scale == scale

    def test_collapse_and_expand_all(self, view):
        assert view.collapse_all() is True
        assert view.snapshot.node_ids == ["A", "F"]
        assert view.expand_all() is True
        assert view.snapshot.node_ids == ALL_IDS

    def test_hidden_collapse_controls_are_refused(self, view):
        view.apply_settings(ViewSettings(controls=ControlSettings(show_collapse_expand=False)))
        assert view.collapse_all() is False
        assert view.snapshot.node_ids == ALL_IDS
        assert view.toggle_collapse("A") is True

    def test_hidden_toolbar_refuses_collapse_all(self, view):
        view.apply_settings(ViewSettings(controls=ControlSettings(show_controls=False)))
        assert view.collapse_all() is False
        assert view.expand_all() is False


class TestTransform:
    def test_zoom_to_keeps_centre(self, view):
        centre = view.viewport.center
        point = view.transform.to_layout(*centre)
        assert view.zoom_to(200) is True
        assert view.transform.scale == 2.0
        assert view.zoom_label == "200%"
        assert view.transform.to_screen(*point) == pytest.approx(centre)

    def test_zoom_text(self, view):
        assert view.zoom_to_percent_text("abc") is False
        assert view.zoom_to_percent_text("150%") is True
        assert view.zoom_label == "150%"

    def test_buttons(self, view):
        scale = view.transform.scale
        view.zoom_in()
        assert view.transform.scale == pytest.approx(scale * 1.1)
        view.zoom_out()
        assert view.transform.scale == pytest.approx(scale * 1.1 * 0.9)

    def test_hidden_zoom_controls_are_refused(self, view):
        view.apply_settings(ViewSettings(controls=ControlSettings(show_zoom=False)))
        before = view.transform
        assert view.zoom_in() is False
        assert view.zoom_out() is False
        assert view.zoom_to(200) is False
        assert view.zoom_to_percent_text("150") is False
        assert view.transform == before
        assert view.wheel(-120, 400, 300) is True

    def test_wheel_anchors_on_cursor(self, view):
        scale = view.transform.scale
        point = view.transform.to_layout(100, 100)
        view.wheel(-120, 100, 100)
        assert view.transform.scale == pytest.approx(scale * 1.1)
        assert view.transform.to_screen(*point) == pytest.approx((100, 100))

    def test_pan(self, view):
        before = view.transform
        view.pan_by(10, -5)
        assert (view.transform.tx, view.transform.ty) == pytest.approx((before.tx + 10, before.ty - 5))

    def test_fit_after_pan(self, view):
        fitted = view.transform
        view.pan_by(50, 50)
        assert view.fit_to_viewport() is True
        assert view.transform == fitted

    def test_table_mode_ignores_transform(self, view):
        view.set_view_mode(ViewMode.TABLE)
        assert view.pan_by(10, 10) is False
        assert view.zoom_by(2) is False
        assert view.hit_test(400, 300) is None


class TestPointer:
    def test_click_selects(self, view):
        hit = view.click(*screen_of(view, "B"))
        assert hit.node.id == "B"
        assert view.state.selected_ids == {"B"}
        assert view.state.focused_id == "B"
        assert view.selected_identities() == ["sel-B"]

    def test_ctrl_click_toggles_membership(self, view):
        view.click(*screen_of(view, "B"))
        view.click(*screen_of(view, "C"), ctrl=True)
        assert view.state.selected_ids == {"B", "C"}
        view.click(*screen_of(view, "B"), meta=True)
        assert view.state.selected_ids == {"C"}

    def test_click_on_empty_canvas_clears(self, view):
        view.click(*screen_of(view, "B"))
        assert view.click(-5000, -5000) is None
        assert view.state.selected_ids == frozenset()
        assert view.state.focused_id is None

    def test_click_on_toggle_collapses_without_selecting(self, view):
        hit = view.click(*toggle_point(view, "B"))
        assert hit.toggle_hit
        assert "B" in view.state.collapsed
        assert "D" not in view.snapshot.node_ids
        assert view.state.selected_ids == frozenset()
        assert view.state.focused_id == "B"

    def test_shift_click_is_ignored(self, view):
        assert view.click(*screen_of(view, "B"), shift=True) is None
        assert view.state.selected_ids == frozenset()

    def test_double_click_zooms_to_node(self, view):
        scale = view.transform.scale
        assert view.double_click(*screen_of(view, "C")) is True
        assert view.transform.scale == pytest.approx(scale * 1.3)
        assert screen_of(view, "C") == pytest.approx(view.viewport.center)

    def test_double_click_on_toggle_is_ignored(self, view):
        before = view.transform
        assert view.double_click(*toggle_point(view, "B")) is False
        assert view.transform == before


class TestKeyboard:
    def test_navigation(self, view):
        assert view.key("ArrowDown")
        assert view.state.focused_id == "B"
        view.key("End")
        assert view.state.focused_id == "G"
        view.key("ArrowRight")
        assert view.state.focused_id == "G"
        view.key("Home")
        assert view.state.focused_id == "A"
        view.key("ArrowUp")
        assert view.state.focused_id == "A"

    def test_enter_selects_focused(self, view):
        view.key("ArrowDown")
        view.key("Enter")
        assert view.state.selected_ids == {"B"}

    def test_collapse_and_expand_keys(self, view):
        view.key("-")
        assert view.snapshot.node_ids == ["A", "F", "G"]
        view.key("_")
        assert view.state.collapsed == {"A"}
        view.key("+")
        assert view.snapshot.node_ids == ALL_IDS

    def test_unknown_key(self, view):
        assert view.key("x") is False


class TestViewMode:
    def test_default_from_settings(self, records):
        settings = ViewSettings(controls=ControlSettings(default_view="table"))
        view = HierarchyView(settings=settings, viewport=Viewport(800, 600))
        view.update(records)
        assert view.state.view_mode == ViewMode.TABLE

    def test_user_choice_survives_update(self, records):
        settings = ViewSettings(controls=ControlSettings(default_view="table"))
        view = HierarchyView(settings=settings, viewport=Viewport(800, 600))
        view.update(records)
        assert view.set_view_mode(ViewMode.TREE) is True
        view.update(records)
        assert view.state.view_mode == ViewMode.TREE

    def test_hidden_toggle_restores_default(self, view):
        view.set_view_mode(ViewMode.TABLE)
        view.apply_settings(ViewSettings(controls=ControlSettings(show_view_toggle=False)))
        assert view.state.view_mode == ViewMode.TREE

    def test_hidden_control_clears_its_filter(self, view):
        view.set_search_query("D")
        view.apply_settings(ViewSettings(controls=ControlSettings(show_search=False)))
        assert view.state.filters.search_query == ""
        assert view.snapshot.node_ids == ALL_IDS
