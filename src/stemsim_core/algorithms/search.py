# src/stemsim_core/algorithms/search.py

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .exceptions import AlgorithmInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BinarySearchStep:
    left: int
    right: int
    mid: int
    found: bool


@dataclass(frozen=True)
class LinearSearchStep:
    index: int
    found: bool


@dataclass(frozen=True)
class SearchResult:
    """The recorded steps of a search and the index of the target, or -1 when absent."""
    steps: Tuple
    index: int

    @property
    def found(self) -> bool:
        return self.index >= 0


def binary_search(values: Sequence[float], target: float) -> SearchResult:
    """
    Classic binary search over an ascending sequence, recording every probe.

    Raises:
        AlgorithmInputError: If `values` is not sorted in ascending order.
    """
    arr = np.asarray(values)
    if arr.size > 1 and np.any(arr[1:] < arr[:-1]):
        raise AlgorithmInputError("binary_search", "Input must be sorted in ascending order.", user_input=list(values))

    steps = []
    left, right = 0, len(values) - 1
    while left <= right:
        mid = (left + right) // 2
        found = bool(values[mid] == target)
        steps.append(BinarySearchStep(left, right, mid, found))
        if found:
            return SearchResult(tuple(steps), mid)
        if values[mid] < target:
            left = mid + 1
        else:
            right = mid - 1
    return SearchResult(tuple(steps), -1)


def linear_search_steps(values: Sequence[float], target: float) -> SearchResult:
    """Scans left to right; the step count is the baseline binary search is compared against."""
    steps = []
    for i, value in enumerate(values):
        found = bool(value == target)
        steps.append(LinearSearchStep(i, found))
        if found:
            return SearchResult(tuple(steps), i)
    return SearchResult(tuple(steps), -1)


def generate_sorted_array(size: int, max_value: int = 100, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """`size` random integers in [1, max_value], sorted ascending. Duplicates are allowed."""
    if size < 0 or max_value < 1:
        raise AlgorithmInputError(
            "generate_sorted_array", "Size must be non-negative and max_value at least 1.",
            user_input=(size, max_value),
        )
    rng = rng if rng is not None else np.random.default_rng()
    return np.sort(rng.integers(1, max_value + 1, size=size))
