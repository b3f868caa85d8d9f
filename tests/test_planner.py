"""
Tests for graph planning: topological order and parallel groups.
"""

import pytest

from flowengine.errors import CyclicGraphError, FlowValidationError
from flowengine.graph.flow import Edge
from flowengine.graph.planner import compute_order, compute_parallel_groups, flatten_groups
from tests.flow_builders import make_edges, make_nodes


def assert_respects_edges(order: list[str], edges: list[Edge]) -> None:
    position = {node_id: index for index, node_id in enumerate(order)}
    for edge in edges:
        assert position[edge.source] < position[edge.target], edge.id


# ---------------------------------------------------------------------------
# compute_order
# ---------------------------------------------------------------------------


class TestComputeOrder:
    def test_linear_chain(self):
        nodes = make_nodes("a", "b", "c")
        edges = make_edges(("a", "b"), ("b", "c"))

        assert compute_order(nodes, edges) == ["a", "b", "c"]

    def test_fan_in_respects_edges(self):
        nodes = make_nodes("A", "B", "C")
        edges = make_edges(("A", "C"), ("B", "C"))

        order = compute_order(nodes, edges)

        assert sorted(order) == ["A", "B", "C"]
        assert order[-1] == "C"
        assert_respects_edges(order, edges)

    def test_roots_keep_declaration_order(self):
        nodes = make_nodes("z", "y", "x")

        assert compute_order(nodes, []) == ["z", "y", "x"]

    def test_successors_enqueued_fifo(self):
        # Diamond: root fans out to b then c (edge order), both feed d
        nodes = make_nodes("root", "c", "b", "d")
        edges = make_edges(("root", "b"), ("root", "c"), ("b", "d"), ("c", "d"))

        assert compute_order(nodes, edges) == ["root", "b", "c", "d"]

    def test_is_permutation_for_wide_dag(self):
        nodes = make_nodes("n1", "n2", "n3", "n4", "n5", "n6")
        edges = make_edges(
            ("n1", "n3"), ("n2", "n3"), ("n3", "n5"), ("n4", "n5"), ("n1", "n6"), ("n5", "n6")
        )

        order = compute_order(nodes, edges)

        assert sorted(order) == sorted(node.id for node in nodes)
        assert_respects_edges(order, edges)

    def test_duplicate_edges_do_not_create_false_cycle(self):
        nodes = make_nodes("a", "b")
        edges = [
            Edge(id="e1", source="a", target="b"),
            Edge(id="e2", source="a", target="b"),
        ]

        assert compute_order(nodes, edges) == ["a", "b"]

    def test_empty_graph(self):
        assert compute_order([], []) == []

    def test_three_node_cycle_raises(self):
        nodes = make_nodes("A", "B", "C")
        edges = make_edges(("A", "B"), ("B", "C"), ("C", "A"))

        with pytest.raises(CyclicGraphError) as exc_info:
            compute_order(nodes, edges)

        assert exc_info.value.remaining == ["A", "B", "C"]

    def test_cycle_downstream_of_valid_prefix_raises(self):
        nodes = make_nodes("start", "loop1", "loop2")
        edges = make_edges(("start", "loop1"), ("loop1", "loop2"), ("loop2", "loop1"))

        with pytest.raises(CyclicGraphError) as exc_info:
            compute_order(nodes, edges)

        assert exc_info.value.remaining == ["loop1", "loop2"]

    def test_self_loop_is_a_cycle(self):
        nodes = make_nodes("solo")
        edges = make_edges(("solo", "solo"))

        with pytest.raises(CyclicGraphError):
            compute_order(nodes, edges)


# ---------------------------------------------------------------------------
# compute_parallel_groups
# ---------------------------------------------------------------------------


class TestComputeParallelGroups:
    def test_fan_in_scenario(self):
        nodes = make_nodes("A", "B", "C")
        edges = make_edges(("A", "C"), ("B", "C"))

        assert compute_parallel_groups(nodes, edges) == [["A", "B"], ["C"]]

    def test_groups_flatten_to_valid_order(self):
        nodes = make_nodes("a", "b", "c", "d", "e")
        edges = make_edges(("a", "c"), ("b", "c"), ("c", "d"), ("a", "e"))

        groups = compute_parallel_groups(nodes, edges)

        assert groups == [["a", "b"], ["c", "e"], ["d"]]
        assert_respects_edges(flatten_groups(groups), edges)

    def test_no_edges_within_a_group(self):
        nodes = make_nodes("a", "b", "c", "d")
        edges = make_edges(("a", "b"), ("a", "c"), ("b", "d"), ("c", "d"))

        groups = compute_parallel_groups(nodes, edges)

        for group in groups:
            members = set(group)
            assert not any(e.source in members and e.target in members for e in edges)

    def test_empty_graph_has_no_groups(self):
        assert compute_parallel_groups([], []) == []

    def test_cycle_raises(self):
        nodes = make_nodes("A", "B", "C")
        edges = make_edges(("A", "B"), ("B", "C"), ("C", "A"))

        with pytest.raises(CyclicGraphError):
            compute_parallel_groups(nodes, edges)

    def test_partial_cycle_raises_without_partial_output(self):
        nodes = make_nodes("ok", "x", "y")
        edges = make_edges(("ok", "x"), ("x", "y"), ("y", "x"))

        with pytest.raises(CyclicGraphError) as exc_info:
            compute_parallel_groups(nodes, edges)

        assert exc_info.value.remaining == ["x", "y"]


# ---------------------------------------------------------------------------
# Dangling edges: rejected before planning
# ---------------------------------------------------------------------------


class TestDanglingEdges:
    def test_order_rejects_edge_to_missing_node(self):
        nodes = make_nodes("a")
        edges = make_edges(("a", "ghost"))

        with pytest.raises(FlowValidationError) as exc_info:
            compute_order(nodes, edges)

        assert "missing target 'ghost'" in str(exc_info.value)

    def test_groups_reject_edge_from_missing_node(self):
        nodes = make_nodes("a")
        edges = make_edges(("ghost", "a"))

        with pytest.raises(FlowValidationError) as exc_info:
            compute_parallel_groups(nodes, edges)

        assert exc_info.value.errors == ["Edge 'ghost->a' references missing source 'ghost'"]

    def test_duplicate_node_ids_rejected(self):
        nodes = make_nodes("a", "a")

        with pytest.raises(FlowValidationError):
            compute_order(nodes, [])
