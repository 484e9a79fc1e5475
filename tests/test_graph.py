"""Tests for the contract graph builder and cycle / missing-dependency detection."""

from pathlib import Path

import pytest

from conftest import make_graph
from contractgraph.errors import DuplicateNodeError
from contractgraph.extractor import SpecDescriptor, key_from_path, load_descriptors
from contractgraph.graph import (
    ContractGraph,
    build_contract_graph,
    detect_cycles,
    find_missing_dependencies,
    impacted_by,
)
from contractgraph.graph_export import export_dot, to_dot


class TestContractGraph:
    """Tests for node registration and reverse edges."""

    def test_add_node(self):
        graph = ContractGraph()
        node = graph.add_node("order.create", "orders/create.operation.ts", ["customer.get"])

        assert "order.create" in graph
        assert graph["order.create"] is node
        assert node.dependencies == ["customer.get"]
        assert node.dependents == []

    def test_duplicate_key_raises(self):
        """Test that two specs claiming one key halt construction."""
        graph = ContractGraph()
        graph.add_node("order.create", "a.operation.ts")

        with pytest.raises(DuplicateNodeError) as exc_info:
            graph.add_node("order.create", "b.operation.ts")
        assert exc_info.value.key == "order.create"

    def test_reverse_edges_independent_of_insertion_order(self):
        """Test dependents when a dependency is declared before its target exists."""
        graph = ContractGraph()
        graph.add_node("A", "a.ts", ["B"])
        graph.add_node("B", "b.ts", [])

        graph.build_reverse_edges()

        assert graph["B"].dependents == ["A"]
        assert graph["A"].dependents == []

    def test_reverse_edges_skip_missing_targets(self):
        graph = make_graph({"A": ["ghost"]})
        assert graph["A"].dependents == []
        assert "ghost" not in graph

    def test_reverse_edges_idempotent(self):
        graph = make_graph({"A": ["B"], "B": []})
        graph.build_reverse_edges()
        assert graph["B"].dependents == ["A"]

    def test_build_from_descriptors_uses_path_slug(self):
        """Test that a descriptor without a key falls back to its filename."""
        graph = build_contract_graph([
            SpecDescriptor(path="src/orders/order-summary.presentation.ts", dependencies=["order.create"]),
            SpecDescriptor(path="src/orders/create.operation.ts", key="order.create"),
        ])

        assert set(graph.keys()) == {"order-summary", "order.create"}
        assert graph["order.create"].dependents == ["order-summary"]


class TestDetectCycles:
    """Tests for DFS cycle detection."""

    def test_acyclic_graph(self):
        graph = make_graph({"A": ["B"], "B": ["C"], "C": []})
        assert detect_cycles(graph) == []

    def test_mutual_reference(self):
        graph = make_graph({"A": ["B"], "B": ["A"]})
        cycles = detect_cycles(graph)

        assert len(cycles) == 1
        assert set(cycles[0]) == {"A", "B"}
        assert cycles[0][0] == cycles[0][-1]

    def test_closing_edge_creates_cycle(self):
        """Test A->B, B->C plus C->A yields [A, B, C, A]."""
        baseline = make_graph({"A": ["B"], "B": ["C"], "C": []})
        assert detect_cycles(baseline) == []

        head = make_graph({"A": ["B"], "B": ["C"], "C": ["A"]})
        assert detect_cycles(head) == [["A", "B", "C", "A"]]

    def test_disjoint_cycles_all_reported(self):
        graph = make_graph({
            "A": ["B"],
            "B": ["A"],
            "C": ["D"],
            "D": ["E"],
            "E": ["C"],
        })
        cycles = detect_cycles(graph)

        assert ["A", "B", "A"] in cycles
        assert ["C", "D", "E", "C"] in cycles
        assert len(cycles) == 2

    def test_repeated_dependency_reports_cycle_once(self):
        graph = make_graph({"A": ["B"], "B": ["A", "A"]})
        assert detect_cycles(graph) == [["A", "B", "A"]]

    def test_self_dependency(self):
        graph = make_graph({"A": ["A"]})
        assert detect_cycles(graph) == [["A", "A"]]

    def test_cycle_slice_excludes_prefix(self):
        """Test that nodes leading into a cycle are not part of it."""
        graph = make_graph({"entry": ["X"], "X": ["Y"], "Y": ["X"]})
        assert detect_cycles(graph) == [["X", "Y", "X"]]

    def test_missing_children_are_dead_ends(self):
        graph = make_graph({"A": ["ghost", "B"], "B": []})
        assert detect_cycles(graph) == []

    def test_deep_chain_does_not_hit_recursion_limit(self):
        size = 5000
        edges = {f"n{i}": [f"n{i + 1}"] for i in range(size)}
        edges[f"n{size}"] = ["n0"]
        graph = make_graph(edges)

        cycles = detect_cycles(graph)

        assert len(cycles) == 1
        assert len(cycles[0]) == size + 2


class TestFindMissingDependencies:
    """Tests for unresolved dependency reporting."""

    def test_no_missing(self):
        graph = make_graph({"A": ["B"], "B": []})
        assert find_missing_dependencies(graph) == []

    def test_groups_missing_per_contract(self):
        graph = make_graph({"A": ["x", "B", "y"], "B": ["z"]})
        missing = {m.contract: m.missing for m in find_missing_dependencies(graph)}

        assert missing == {"A": ("x", "y"), "B": ("z",)}

    def test_duplicate_missing_reported_once(self):
        graph = make_graph({"A": ["x", "x"]})
        records = find_missing_dependencies(graph)

        assert len(records) == 1
        assert records[0].missing == ("x",)
        assert records[0].to_dict() == {"contract": "A", "missing": ["x"]}


class TestImpactedBy:
    def test_transitive_dependents(self):
        graph = make_graph({"A": ["B"], "B": ["C"], "C": [], "D": ["C"]})
        assert impacted_by(graph, "C") == ["B", "D", "A"]

    def test_unknown_key(self):
        graph = make_graph({"A": []})
        assert impacted_by(graph, "nope") == []

    def test_cycle_terminates(self):
        graph = make_graph({"A": ["B"], "B": ["A"]})
        assert impacted_by(graph, "A") == ["B"]


class TestExtractorContract:
    """Tests for descriptor loading and path-derived keys."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/orders/create-order.operation.ts", "create-order"),
            ("events/order-created.event.ts", "order-created"),
            ("views/orders.data-view.ts", "orders"),
            ("plain.ts", "plain"),
            ("C:\\repo\\billing.workflow.ts", "billing"),
        ],
    )
    def test_key_from_path(self, path, expected):
        assert key_from_path(path) == expected

    def test_load_descriptors(self, fixtures_path: Path):
        descriptors = load_descriptors(fixtures_path / "descriptors.json")

        assert len(descriptors) == 4
        assert descriptors[0].resolved_key == "order.create"
        assert descriptors[3].resolved_key == "order-summary"

    def test_load_descriptors_rejects_missing_path(self, temp_dir: Path):
        bad = temp_dir / "bad.json"
        bad.write_text('[{"key": "a"}]', encoding="utf-8")

        with pytest.raises(ValueError):
            load_descriptors(bad)


class TestDotExport:
    def test_one_edge_per_dependency(self):
        graph = make_graph({"A": ["B", "C"], "B": ["C"], "C": []})
        dot = to_dot(graph)

        assert dot.startswith("digraph ContractGraph {")
        assert dot.rstrip().endswith("}")
        assert dot.count("->") == 3
        assert '"A" -> "B";' in dot

    def test_repeated_dependency_single_edge(self):
        graph = make_graph({"A": ["B", "B"], "B": []})
        assert to_dot(graph).count("->") == 1

    def test_missing_target_is_dashed(self):
        graph = make_graph({"A": ["ghost"]})
        assert '"A" -> "ghost" [style=dashed, color=red];' in to_dot(graph)

    def test_focus_limits_nodes(self):
        graph = make_graph({"A": ["B"], "B": [], "X": ["Y"], "Y": []})
        dot = to_dot(graph, focus="X")

        assert '"X" -> "Y";' in dot
        assert '"A"' not in dot

    def test_export_writes_file(self, temp_dir: Path):
        graph = make_graph({"A": ["B"], "B": []})
        output = temp_dir / "graph.dot"

        export_dot(graph, output)

        assert output.read_text(encoding="utf-8") == to_dot(graph)
