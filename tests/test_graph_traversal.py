# tests/test_graph_traversal.py
import networkx as nx
import pytest

from stemsim_core.algorithms import (
    Algorithm,
    AlgorithmInputError,
    TraversalPhase,
    build_grid_graph,
    reconstruct_path,
    traverse,
)


@pytest.fixture
def line_graph():
    """
    0 --1-- 1 --1-- 2 --1-- 3, plus a heavy 0-2 (4) shortcut and a heavy 1-3 (5) edge.
    Nodes lie on a line 50 units apart.
    """
    graph = nx.Graph()
    for node in range(4):
        graph.add_node(node, pos=(50.0 * node, 0.0))
    graph.add_edge(0, 1, weight=1)
    graph.add_edge(0, 2, weight=4)
    graph.add_edge(1, 2, weight=1)
    graph.add_edge(2, 3, weight=1)
    graph.add_edge(1, 3, weight=5)
    return graph


def run(graph, algorithm, start, goal):
    steps = list(traverse(graph, algorithm, start, goal))
    return steps[:-1], steps[-1]


class TestTraversalOrder:

    def test_bfs(self, line_graph):
        visits, done = run(line_graph, "bfs", 0, 3)
        assert [s.current for s in visits] == [0, 1, 2, 3]
        assert done.path == (0, 1, 3)

    def test_dfs(self, line_graph):
        visits, done = run(line_graph, Algorithm.DFS, 0, 3)
        assert [s.current for s in visits] == [0, 2, 3]
        assert done.path == (0, 2, 3)

    def test_dijkstra_finds_cheapest_path(self, line_graph):
        visits, done = run(line_graph, "dijkstra", 0, 3)
        assert [s.current for s in visits] == [0, 1, 2, 3]
        assert [v.distance for v in done.visited] == [0.0, 1.0, 2.0, 3.0]
        assert done.path == (0, 1, 2, 3)

    def test_astar_matches_dijkstra_path(self, line_graph):
        visits, done = run(line_graph, "astar", 0, 3)
        assert [s.current for s in visits] == [0, 1, 2, 3]
        assert done.path == (0, 1, 2, 3)

    def test_dijkstra_frontier_snapshot(self, line_graph):
        visits, _ = run(line_graph, "dijkstra", 0, 3)
        # After visiting 1 the queue holds 2 (via 0, cost 4).
        assert visits[1].frontier == (2,)
        assert visits[1].visited_ids == (0, 1)

    def test_ties_resolve_in_insertion_order(self):
        star = nx.Graph()
        star.add_nodes_from(range(10))
        for leaf in (3, 1, 2):
            star.add_edge(0, leaf, weight=1)
        for algorithm, expected in (("bfs", [0, 3, 1, 2]), ("dijkstra", [0, 3, 1, 2]), ("dfs", [0, 2, 1, 3])):
            visits, done = run(star, algorithm, 0, 9)
            assert [s.current for s in visits] == expected, algorithm
            assert done.path == ()

    def test_repeated_runs_are_identical(self):
        graph = build_grid_graph(seed=5)
        for algorithm in Algorithm:
            assert list(traverse(graph, algorithm, 0, 8)) == list(traverse(graph, algorithm, 0, 8))


class TestTraversalContract:

    def test_last_step_is_done_and_only_last(self, line_graph):
        for algorithm in Algorithm:
            visits, done = run(line_graph, algorithm, 0, 3)
            assert done.phase is TraversalPhase.DONE
            assert done.current is None
            assert all(s.phase is TraversalPhase.VISIT for s in visits)

    def test_each_node_visited_at_most_once(self):
        graph = build_grid_graph(seed=11)
        for algorithm in Algorithm:
            _, done = run(graph, algorithm, 0, 8)
            ids = done.visited_ids
            assert len(ids) == len(set(ids))

    def test_path_is_connected(self):
        graph = build_grid_graph(seed=2)
        for algorithm in Algorithm:
            _, done = run(graph, algorithm, 0, 8)
            assert done.path[0] == 0 and done.path[-1] == 8
            for a, b in zip(done.path, done.path[1:]):
                assert graph.has_edge(a, b)

    def test_dijkstra_cost_matches_networkx(self):
        graph = build_grid_graph(seed=9)
        _, done = run(graph, "dijkstra", 0, 8)
        goal = [v for v in done.visited if v.node == 8][0]
        assert goal.distance == nx.dijkstra_path_length(graph, 0, 8)

    def test_start_equals_goal(self, line_graph):
        visits, done = run(line_graph, "bfs", 2, 2)
        assert [s.current for s in visits] == [2]
        assert done.path == (2,)

    def test_unreachable_goal_yields_empty_path(self, line_graph):
        line_graph.add_node(7, pos=(0.0, 100.0))
        for algorithm in Algorithm:
            visits, done = run(line_graph, algorithm, 0, 7)
            assert len(visits) == 4
            assert done.path == ()

    def test_generator_cannot_be_restarted(self, line_graph):
        steps = traverse(line_graph, "bfs", 0, 3)
        assert len(list(steps)) == 5
        assert list(steps) == []

    def test_invalid_input_is_rejected_eagerly(self, line_graph):
        with pytest.raises(AlgorithmInputError):
            traverse(line_graph, "greedy", 0, 3)
        with pytest.raises(AlgorithmInputError) as excinfo:
            traverse(line_graph, "bfs", 0, 42)
        assert "goal" in str(excinfo.value)


class TestGridGraph:

    def test_shape_and_weights(self):
        graph = build_grid_graph(seed=1)
        assert graph.number_of_nodes() == 9
        assert 12 <= graph.number_of_edges() <= 16
        for a, b, data in graph.edges(data=True):
            lo, hi = sorted((a, b))
            if hi - lo == 4:
                assert 2 <= data["weight"] <= 6
            else:
                assert 1 <= data["weight"] <= 5

    def test_positions_are_jittered_grid(self):
        graph = build_grid_graph(seed=1)
        x, y = graph.nodes[4]["pos"]
        assert abs(x - 370.0) <= 10.0
        assert abs(y - 240.0) <= 10.0

    def test_same_seed_same_graph(self):
        a, b = build_grid_graph(seed=4), build_grid_graph(seed=4)
        assert list(a.edges(data=True)) == list(b.edges(data=True))
        assert dict(a.nodes(data="pos")) == dict(b.nodes(data="pos"))


def test_reconstruct_path_stops_at_root():
    assert reconstruct_path({0: None, 1: 0, 2: 1}, 2) == (0, 1, 2)
    assert reconstruct_path({0: None}, 5) == ()
