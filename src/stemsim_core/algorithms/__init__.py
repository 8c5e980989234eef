# src/stemsim_core/algorithms/__init__.py
from .exceptions import AlgorithmInputError
from .graph_traversal import (
    Algorithm,
    TraversalPhase,
    TraversalStep,
    VisitedNode,
    build_grid_graph,
    euclidean_heuristic,
    reconstruct_path,
    traverse,
)
from .driver import CancellationToken, StepDriver, run_steps
from .search import (
    BinarySearchStep,
    LinearSearchStep,
    SearchResult,
    binary_search,
    linear_search_steps,
    generate_sorted_array,
)
from .number_theory import GcdStep, GcdResult, gcd_steps, collatz_sequence

__all__ = [
    # Exceptions
    "AlgorithmInputError",
    # Graph traversal
    "Algorithm",
    "TraversalPhase",
    "TraversalStep",
    "VisitedNode",
    "build_grid_graph",
    "euclidean_heuristic",
    "reconstruct_path",
    "traverse",
    # Pacing
    "CancellationToken",
    "StepDriver",
    "run_steps",
    # Searches
    "BinarySearchStep",
    "LinearSearchStep",
    "SearchResult",
    "binary_search",
    "linear_search_steps",
    "generate_sorted_array",
    # Number theory
    "GcdStep",
    "GcdResult",
    "gcd_steps",
    "collatz_sequence",
]
