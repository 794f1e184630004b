"""Unit tests for hierarchy construction and structural validation."""

from hierflow.core.hierarchy import build_hierarchy, stratify
from hierflow.core.result import Err, Ok
from hierflow.core.types import NodeKind, Row, StructuralErrorKind


def make_rows(*pairs):
    return [Row(id=i, parent_id=p) for i, p in pairs]


class TestBuildHierarchy:
    def test_single_root_has_no_synthetic_node(self):
        result = build_hierarchy(make_rows(("A", None), ("B", "A"), ("C", "A"), ("D", "B")))
        assert isinstance(result, Ok)
        tree = result.value
        assert not tree.has_synthetic_root
        assert tree.depth_offset == 0
        assert [n.id for n in tree.nodes] == ["A", "B", "D", "C"]
        assert [n.depth for n in tree.nodes] == [0, 1, 2, 1]

    def test_children_keep_row_order(self):
        tree = build_hierarchy(make_rows(("A", None), ("C", "A"), ("B", "A"))).value
        assert [c.id for c in tree.children_of(0)] == ["C", "B"]

    def test_multiple_roots_get_synthetic_parent(self):
        tree = build_hierarchy(make_rows(("A", None), ("B", None))).value
        root = tree.root
        assert root.kind is NodeKind.SYNTHETIC
        assert root.row is None and root.id is None
        assert [c.id for c in tree.children_of(root.index)] == ["A", "B"]
        assert tree.depth_offset == 1
        assert [n.id for n in tree.real_nodes()] == ["A", "B"]

    def test_parent_outside_set_becomes_root(self):
        tree = build_hierarchy(make_rows(("B", "A"), ("D", "B"))).value
        assert tree.root.id == "B"
        assert not tree.has_synthetic_root

    def test_duplicate_ids(self):
        result = build_hierarchy(make_rows(("A", None), ("A", None), ("B", "A")))
        assert isinstance(result, Err)
        assert result.error.kind is StructuralErrorKind.DUPLICATE_ID
        assert result.error.node_ids == ["A"]

    def test_pure_cycle(self):
        result = build_hierarchy(make_rows(("A", "B"), ("B", "A")))
        assert isinstance(result, Err)
        assert result.error.kind is StructuralErrorKind.CYCLE
        assert result.error.node_ids == ["A", "B"]

    def test_self_parent(self):
        result = build_hierarchy(make_rows(("R", None), ("A", "A")))
        assert result.error.kind is StructuralErrorKind.CYCLE
        assert result.error.node_ids == ["A"]

    def test_deep_chain(self):
        rows = [Row(id="n0")] + [Row(id=f"n{i}", parent_id=f"n{i - 1}") for i in range(1, 5000)]
        tree = build_hierarchy(rows).value
        assert len(tree) == 5000
        assert tree.nodes[-1].depth == 4999


class TestStratify:
    def test_single_root(self):
        assert stratify(make_rows(("A", None), ("B", "A"))).is_ok()

    def test_missing_parent(self):
        result = stratify(make_rows(("A", None), ("B", "ghost")))
        assert result.error.kind is StructuralErrorKind.MISSING_PARENT
        assert result.error.node_ids == ["B"]

    def test_multiple_roots(self):
        result = stratify(make_rows(("A", None), ("B", None)))
        assert result.error.kind is StructuralErrorKind.MULTIPLE_ROOTS
        assert result.error.node_ids == ["A", "B"]

    def test_no_root(self):
        result = stratify(make_rows(("A", "B"), ("B", "A")))
        assert result.error.kind is StructuralErrorKind.NO_ROOT

    def test_cycle_below_root(self):
        result = stratify(make_rows(("R", None), ("A", "B"), ("B", "A")))
        assert result.error.kind is StructuralErrorKind.CYCLE

    def test_error_message_lists_ids(self):
        result = stratify(make_rows(("A", None), ("B", "x"), ("C", "y")))
        assert str(result.error) == "missing_parent: B, C"


class TestResult:
    def test_structural_err_carries_kind_and_ids(self):
        err = Err.structural(StructuralErrorKind.NO_ROOT, [], "no root")
        assert err.kind is StructuralErrorKind.NO_ROOT
        assert err.error.node_ids == []

    def test_structural_err_logs_warning(self, caplog):
        with caplog.at_level("WARNING", logger="hierflow.core.result"):
            Err.structural(StructuralErrorKind.CYCLE, ["A", "B"])
        assert "Invalid hierarchy: cycle: A, B" in caplog.text

    def test_ok_wraps_value(self):
        assert Ok(3).value == 3
