# src/stemsim_core/algorithms/graph_traversal.py
"""
Step-by-step graph search for animation.

`traverse()` returns a generator that yields one `TraversalStep` per node visit and a
final `DONE` step carrying the reconstructed path. Each step is an immutable snapshot,
so a consumer may keep any of them without copying. The generator is lazy, finite and
cannot be restarted; to replay, call `traverse()` again.

Neighbors are explored in adjacency insertion order, and the weighted searches break
priority ties by insertion order, so a given graph always produces the same sequence.
"""

import heapq
import itertools
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import networkx as nx
import numpy as np

from .exceptions import AlgorithmInputError

logger = logging.getLogger(__name__)

HEURISTIC_SCALE = 50.0


class Algorithm(Enum):
    BFS = "bfs"
    DFS = "dfs"
    DIJKSTRA = "dijkstra"
    ASTAR = "astar"

    def __str__(self):
        return self.value


class TraversalPhase(Enum):
    VISIT = "visit"
    DONE = "done"


@dataclass(frozen=True)
class VisitedNode:
    node: int
    parent: Optional[int]
    distance: float


@dataclass(frozen=True)
class TraversalStep:
    phase: TraversalPhase
    current: Optional[int]
    visited: Tuple[VisitedNode, ...]
    frontier: Tuple[int, ...]
    path: Tuple[int, ...] = ()

    @property
    def visited_ids(self) -> Tuple[int, ...]:
        return tuple(v.node for v in self.visited)


def build_grid_graph(
    size: int = 3,
    spacing: float = 120.0,
    jitter: float = 20.0,
    seed: Optional[int] = None,
    offset: Tuple[float, float] = (250.0, 120.0),
) -> nx.Graph:
    """
    Builds a jittered `size` x `size` grid. Every node links to its right and lower
    neighbors with an integer weight in [1, 5]; each cell gains its down-right diagonal
    with probability 1/2, weighted in [2, 6]. Nodes are numbered row-major and carry
    their drawing position in the 'pos' attribute.
    """
    rng = np.random.default_rng(seed)
    graph = nx.Graph()
    for row in range(size):
        for col in range(size):
            x = offset[0] + col * spacing + (rng.random() - 0.5) * jitter
            y = offset[1] + row * spacing + (rng.random() - 0.5) * jitter
            graph.add_node(row * size + col, pos=(float(x), float(y)))

    for row in range(size):
        for col in range(size):
            node = row * size + col
            if col < size - 1:
                graph.add_edge(node, node + 1, weight=int(rng.integers(1, 6)))
            if row < size - 1:
                graph.add_edge(node, node + size, weight=int(rng.integers(1, 6)))
            if row < size - 1 and col < size - 1 and rng.random() > 0.5:
                graph.add_edge(node, node + size + 1, weight=int(rng.integers(2, 7)))

    logger.debug(f"Built {size}x{size} grid graph with {graph.number_of_edges()} edges.")
    return graph


def euclidean_heuristic(graph: nx.Graph, a: int, b: int) -> float:
    (xa, ya), (xb, yb) = graph.nodes[a]["pos"], graph.nodes[b]["pos"]
    return math.hypot(xa - xb, ya - yb) / HEURISTIC_SCALE


def reconstruct_path(parents: Dict[int, Optional[int]], goal: int) -> Tuple[int, ...]:
    path: List[int] = []
    node: Optional[int] = goal
    while node is not None and node in parents:
        path.append(node)
        node = parents[node]
    path.reverse()
    return tuple(path)


def traverse(graph: nx.Graph, algorithm, start: int, goal: int) -> Iterator[TraversalStep]:
    """
    Validates the request eagerly and returns the step generator.

    Raises:
        AlgorithmInputError: For an unknown algorithm or a start/goal node not in the graph.
    """
    try:
        algorithm = Algorithm(algorithm)
    except ValueError:
        raise AlgorithmInputError(
            "graph_traversal", f"Unknown algorithm. Valid: {[a.value for a in Algorithm]}.", user_input=algorithm
        ) from None
    for label, node in (("start", start), ("goal", goal)):
        if node not in graph:
            raise AlgorithmInputError(
                str(algorithm), f"The {label} node is not in the graph.", user_input=node
            )
    logger.info(f"Starting {algorithm} traversal from {start} to {goal}.")
    return _STRATEGIES[algorithm](graph, start, goal)


def _done(visited: List[VisitedNode], parents, goal: int, reached: bool) -> TraversalStep:
    path = reconstruct_path(parents, goal) if reached else ()
    return TraversalStep(TraversalPhase.DONE, None, tuple(visited), (), path)


def _unweighted(graph: nx.Graph, start: int, goal: int, lifo: bool) -> Iterator[TraversalStep]:
    frontier: List[int] = [start]
    seen = set()
    visited: List[VisitedNode] = []
    parents: Dict[int, Optional[int]] = {start: None}
    distances: Dict[int, float] = {start: 0}

    while frontier:
        current = frontier.pop() if lifo else frontier.pop(0)
        if current in seen:
            continue
        seen.add(current)
        visited.append(VisitedNode(current, parents.get(current), distances.get(current, 0)))
        yield TraversalStep(TraversalPhase.VISIT, current, tuple(visited), tuple(frontier))

        if current == goal:
            break
        for neighbor in graph.adj[current]:
            if neighbor in seen:
                continue
            if lifo:
                frontier.append(neighbor)
                # Depth-first keeps the parent of first discovery.
                if neighbor not in parents:
                    parents[neighbor] = current
                    distances[neighbor] = distances[current] + 1
            elif neighbor not in frontier:
                frontier.append(neighbor)
                parents[neighbor] = current
                distances[neighbor] = distances[current] + 1

    yield _done(visited, parents, goal, goal in seen)


def _bfs(graph, start, goal):
    return _unweighted(graph, start, goal, lifo=False)


def _dfs(graph, start, goal):
    return _unweighted(graph, start, goal, lifo=True)


def _best_first(graph: nx.Graph, start: int, goal: int, use_heuristic: bool) -> Iterator[TraversalStep]:
    def h(node: int) -> float:
        return euclidean_heuristic(graph, node, goal) if use_heuristic else 0.0

    counter = itertools.count()
    # (priority, insertion order, node, cost so far)
    heap: List[Tuple[float, int, int, float]] = [(h(start), next(counter), start, 0.0)]
    seen = set()
    visited: List[VisitedNode] = []
    parents: Dict[int, Optional[int]] = {start: None}
    costs: Dict[int, float] = {start: 0.0}

    while heap:
        _, _, current, cost = heapq.heappop(heap)
        if current in seen:
            continue
        seen.add(current)
        visited.append(VisitedNode(current, parents.get(current), cost))
        frontier = tuple(entry[2] for entry in sorted(heap))
        yield TraversalStep(TraversalPhase.VISIT, current, tuple(visited), frontier)

        if current == goal:
            break
        for neighbor, attrs in graph.adj[current].items():
            if neighbor in seen:
                continue
            new_cost = cost + attrs.get("weight", 1)
            if new_cost < costs.get(neighbor, math.inf):
                costs[neighbor] = new_cost
                parents[neighbor] = current
                heapq.heappush(heap, (new_cost + h(neighbor), next(counter), neighbor, new_cost))

    yield _done(visited, parents, goal, goal in seen)


def _dijkstra(graph, start, goal):
    return _best_first(graph, start, goal, use_heuristic=False)


def _astar(graph, start, goal):
    return _best_first(graph, start, goal, use_heuristic=True)


_STRATEGIES = {
    Algorithm.BFS: _bfs,
    Algorithm.DFS: _dfs,
    Algorithm.DIJKSTRA: _dijkstra,
    Algorithm.ASTAR: _astar,
}
