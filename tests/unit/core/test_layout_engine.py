"""Tests for the tree layout engine."""

import pytest

from callmap.config.settings import LayoutConfig
from callmap.core.exceptions import LayoutError
from callmap.core.graph_builder import CallGraph, build_call_graph
from callmap.core.layout_engine import (
    Connector,
    calculate_tree_layout,
    display_name,
    node_width,
)


def count_visible(graph, expanded):
    """Reference count: occurrences reachable through expanded nodes only."""

    def walk(idx, path):
        node = graph.node(idx)
        if node.key in path:
            return 1
        if not (node.children and node.key in expanded):
            return 1
        return 1 + sum(walk(c, path | {node.key}) for c in node.children)

    return sum(walk(r, frozenset()) for r in graph.roots)


class TestDisplayName:
    def test_last_segment(self):
        assert display_name("pkg.sub.Run") == "Run"

    def test_main_gets_directory(self):
        assert display_name("main.main", "services/api/main.go") == "main (api)"

    def test_main_under_cmd_falls_back(self):
        assert display_name("main.main", "tool/cmd/main.go") == "main (tool)"

    def test_main_at_root(self):
        assert display_name("main.main", "main.go") == "main (root)"

    def test_windows_separators(self):
        assert display_name("main.main", "EmployeeApp\\main.go") == "main (EmployeeApp)"


class TestLayout:
    def test_collapsed_roots_stack_by_row(self, record):
        graph = build_call_graph([record("a.A", "a.go"), record("b.B", "b.go")])
        scene = calculate_tree_layout(graph, set())

        assert [n.y for n in scene.nodes] == [100, 160]
        assert all(n.x == 50 for n in scene.nodes)
        assert all(n.connector is None for n in scene.nodes)

    def test_example_expansion(self, main_run_records):
        graph = build_call_graph(main_run_records)

        collapsed = calculate_tree_layout(graph, set())
        assert [n.name for n in collapsed.nodes] == ["main.main"]
        assert collapsed.nodes[0].expandable
        assert collapsed.nodes[0].call_count == 1

        scene = calculate_tree_layout(graph, {"main.main@cmd/main.go"})
        main, run = scene.nodes
        assert run.name == "pkg.Run"
        assert run.level == 1
        assert run.call_count == 0
        assert not run.expandable
        assert run.parent_slot_id == main.slot_id

    def test_children_column_clears_parent_label(self, main_run_records):
        config = LayoutConfig()
        graph = build_call_graph(main_run_records)
        main, run = calculate_tree_layout(graph, {"main.main@cmd/main.go"}).nodes

        assert main.width == node_width(main.label, config)
        assert run.x == main.x + main.width + config.gutter

    def test_expanded_slot_holds_children(self, record):
        records = [
            record("p.P", "p.go", ("p.A", "p.go"), ("p.B", "p.go"), ("p.C", "p.go")),
            record("q.Q", "q.go"),
        ]
        graph = build_call_graph(records)
        scene = calculate_tree_layout(graph, {"p.P@p.go"})

        by_name = {n.name: n for n in scene.nodes}
        assert [by_name[n].y for n in ("p.A", "p.B", "p.C")] == [100, 160, 220]
        assert by_name["p.P"].y == 160  # centered on its children
        assert by_name["q.Q"].y == 280  # next root starts below the slot

    def test_collapsed_branch_takes_one_row(self, record):
        records = [
            record("p.P", "p.go", ("p.A", "p.go"), ("p.B", "p.go")),
            record("q.Q", "q.go"),
        ]
        graph = build_call_graph(records)
        scene = calculate_tree_layout(graph, set())
        assert [n.y for n in scene.nodes] == [100, 160]

    def test_no_sibling_overlap(self, record):
        records = [
            record("r.R", "r.go", ("a.A", "a.go"), ("b.B", "b.go")),
            record("a.A", "a.go", ("x.X", "x.go"), ("y.Y", "y.go"), ("z.Z", "z.go")),
            record("b.B", "b.go", ("w.W", "w.go")),
        ]
        graph = build_call_graph(records)
        scene = calculate_tree_layout(graph, {"r.R@r.go", "a.A@a.go", "b.B@b.go"})

        for level in {n.level for n in scene.nodes}:
            ys = sorted(n.y for n in scene.nodes if n.level == level)
            assert all(b - a >= 60 for a, b in zip(ys, ys[1:]))

    def test_visible_count_matches_expansion(self, record):
        records = [
            record("r.R", "r.go", ("a.A", "a.go"), ("b.B", "b.go"), ("a.A", "a.go")),
            record("a.A", "a.go", ("c.C", "c.go")),
            record("b.B", "b.go", ("c.C", "c.go"), ("ext.E", "ext.go")),
            record("c.C", "c.go"),
            record("s.S", "s.go", ("a.A", "a.go")),
        ]
        graph = build_call_graph(records)
        for expanded in (
            set(),
            {"r.R@r.go"},
            {"r.R@r.go", "a.A@a.go"},
            {"a.A@a.go", "b.B@b.go"},
            {"r.R@r.go", "a.A@a.go", "b.B@b.go", "s.S@s.go"},
        ):
            scene = calculate_tree_layout(graph, expanded)
            assert len(scene) == count_visible(graph, expanded)

    def test_shared_node_expands_everywhere(self, record):
        records = [
            record("r.R", "r.go", ("s.S", "s.go")),
            record("q.Q", "q.go", ("s.S", "s.go")),
            record("s.S", "s.go", ("t.T", "t.go")),
        ]
        graph = build_call_graph(records)
        scene = calculate_tree_layout(graph, {"r.R@r.go", "q.Q@q.go", "s.S@s.go"})
        assert len(scene.find("t.T@t.go")) == 2

    def test_collapse_then_reexpand_is_identical(self, record):
        records = [
            record("r.R", "r.go", ("a.A", "a.go"), ("b.B", "b.go")),
            record("a.A", "a.go", ("c.C", "c.go")),
        ]
        graph = build_call_graph(records)
        expanded = {"r.R@r.go", "a.A@a.go"}

        first = calculate_tree_layout(graph, expanded)
        calculate_tree_layout(graph, {"a.A@a.go"})
        again = calculate_tree_layout(graph, expanded)

        assert [n.to_dict() for n in first.nodes] == [n.to_dict() for n in again.nodes]

    def test_self_call_becomes_recursive_marker(self, record):
        records = [
            record("m.Main", "m.go", ("r.Loop", "r.go")),
            record("r.Loop", "r.go", ("r.Loop", "r.go")),
        ]
        graph = build_call_graph(records)
        scene = calculate_tree_layout(graph, {"m.Main@m.go", "r.Loop@r.go"})

        names = [(n.name, n.recursive) for n in scene.nodes]
        assert names == [("m.Main", False), ("r.Loop", False), ("r.Loop", True)]
        marker = scene.nodes[-1]
        assert not marker.expandable
        assert not marker.expanded

    def test_self_calling_root_is_shown_and_cut(self, record, main_run_records):
        walker = record("walk.Walk", "walk.go", ("walk.Walk", "walk.go"))
        records = [*main_run_records, walker]
        graph = build_call_graph(records)

        collapsed = calculate_tree_layout(graph, set())
        assert [n.name for n in collapsed.nodes] == ["main.main", "walk.Walk"]
        assert collapsed.nodes[1].expandable

        scene = calculate_tree_layout(graph, {"walk.Walk@walk.go"})
        walk, marker = scene.nodes[1:]
        assert (walk.name, walk.recursive) == ("walk.Walk", False)
        assert (marker.name, marker.recursive) == ("walk.Walk", True)
        assert marker.parent_slot_id == walk.slot_id

    def test_deep_expanded_chain(self, record):
        depth = 1500
        records = [
            record(f"chain.F{i}", "chain.go", (f"chain.F{i + 1}", "chain.go"))
            for i in range(depth)
        ]
        records.append(record(f"chain.F{depth}", "chain.go"))
        graph = build_call_graph(records)
        expanded = {r.key for r in records}

        scene = calculate_tree_layout(graph, expanded)

        assert len(scene) == depth + 1
        assert [n.level for n in scene.nodes] == list(range(depth + 1))
        assert all(n.y == 100 for n in scene.nodes)
        deepest = scene.nodes[-1]
        assert deepest.x > scene.nodes[-2].right

    def test_longer_cycle_is_cut(self, record):
        records = [
            record("m.Main", "m.go", ("c.A", "c.go")),
            record("c.A", "c.go", ("c.B", "c.go")),
            record("c.B", "c.go", ("c.A", "c.go")),
        ]
        graph = build_call_graph(records)
        expanded = {"m.Main@m.go", "c.A@c.go", "c.B@c.go"}
        scene = calculate_tree_layout(graph, expanded)

        assert [n.name for n in scene.nodes] == ["m.Main", "c.A", "c.B", "c.A"]
        assert scene.nodes[-1].recursive

    def test_connector_runs_right_edge_to_left_edge(self, main_run_records):
        graph = build_call_graph(main_run_records)
        main, run = calculate_tree_layout(graph, {"main.main@cmd/main.go"}).nodes

        c = run.connector
        assert c.start == (main.x + main.width, main.y)
        assert c.end == (run.x, run.y)
        assert c.control1[1] == c.start[1]
        assert c.control2[1] == c.end[1]
        assert c.svg_path().startswith("M ")

    def test_bounds(self, record):
        scene = calculate_tree_layout(build_call_graph([record("a.A", "a.go")]), set())
        node = scene.nodes[0]
        assert scene.width == node.x + node.width
        assert scene.height == node.y + node.height / 2

    def test_empty_graph(self):
        scene = calculate_tree_layout(CallGraph(), set())
        assert len(scene) == 0

    def test_bad_root_index(self):
        with pytest.raises(LayoutError):
            calculate_tree_layout(CallGraph(roots=[3]), set())


def test_connector_control_points_are_symmetric():
    c = Connector.between((0.0, 0.0), (100.0, 50.0))
    assert c.control1 == (50.0, 0.0)
    assert c.control2 == (50.0, 50.0)
