"""Unit tests for collapse-aware visibility."""

import pytest

from hierflow.core.index import build_children_index
from hierflow.core.types import Row
from hierflow.core.visibility import compute_visibility, compute_visible_rows, find_roots


@pytest.fixture
def rows():
    return [
        Row(id="A"),
        Row(id="B", parent_id="A"),
        Row(id="C", parent_id="A"),
        Row(id="D", parent_id="B"),
        Row(id="E", parent_id="C"),
        Row(id="F"),
        Row(id="G", parent_id="F"),
    ]


@pytest.fixture
def children(rows):
    return build_children_index(rows)


def visible_ids(rows, children, collapsed=()):
    return [r.id for r in compute_visible_rows(rows, children, frozenset(collapsed))]


class TestFindRoots:
    def test_parent_outside_set_is_root(self, rows):
        subset = [r for r in rows if r.id in {"B", "D", "F"}]
        assert [r.id for r in find_roots(subset)] == ["B", "F"]


class TestVisibility:
    def test_everything_visible_without_collapse(self, rows, children):
        assert visible_ids(rows, children) == ["A", "B", "C", "D", "E", "F", "G"]

    def test_collapse_hides_descendants(self, rows, children):
        assert visible_ids(rows, children, {"B"}) == ["A", "B", "C", "E", "F", "G"]

    def test_collapse_root(self, rows, children):
        assert visible_ids(rows, children, {"A"}) == ["A", "F", "G"]

    def test_collapsing_leaf_is_noop(self, rows, children):
        assert visible_ids(rows, children, {"D"}) == visible_ids(rows, children)

    def test_toggling_twice_restores(self, rows, children):
        before = visible_ids(rows, children, {"C"})
        collapsed = {"C"} ^ {"A"}
        collapsed ^= {"A"}
        assert visible_ids(rows, children, collapsed) == before

    def test_nested_collapse_is_remembered(self, rows, children):
        # B stays collapsed while its ancestor is expanded again.
        assert visible_ids(rows, children, {"A", "B"}) == ["A", "F", "G"]
        assert visible_ids(rows, children, {"B"}) == ["A", "B", "C", "E", "F", "G"]

    def test_only_filtered_children_are_walked(self, rows, children):
        filtered = [r for r in rows if r.id in {"A", "B", "D"}]
        assert visible_ids(filtered, children) == ["A", "B", "D"]

    def test_empty(self, children):
        result = compute_visibility([], children, frozenset())
        assert result.rows == [] and result.unreachable_ids == []


class TestUnreachable:
    def test_cycle_members_are_reported(self):
        rows = [Row(id="R"), Row(id="X", parent_id="Y"), Row(id="Y", parent_id="X")]
        result = compute_visibility(rows, build_children_index(rows), frozenset())
        assert [r.id for r in result.rows] == ["R"]
        assert result.unreachable_ids == ["X", "Y"]

    def test_collapse_does_not_count_as_unreachable(self, rows, children):
        result = compute_visibility(rows, children, frozenset({"A", "F"}))
        assert result.unreachable_ids == []
        assert result.ids == {"A", "F"}
