# src/stemsim_core/algorithms/number_theory.py

import logging
from dataclasses import dataclass
from typing import List, Tuple

from .exceptions import AlgorithmInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GcdStep:
    """One division of the Euclidean algorithm: a = q*b + r."""
    a: int
    b: int
    q: int
    r: int


@dataclass(frozen=True)
class GcdResult:
    steps: Tuple[GcdStep, ...]
    result: int


def gcd_steps(a: int, b: int) -> GcdResult:
    """Euclid's algorithm on non-negative integers, recording each division."""
    if a < 0 or b < 0:
        raise AlgorithmInputError("gcd", "Operands must be non-negative integers.", user_input=(a, b))
    steps = []
    while b != 0:
        q, r = divmod(a, b)
        steps.append(GcdStep(a, b, q, r))
        a, b = b, r
    return GcdResult(tuple(steps), a)


def collatz_sequence(n: int) -> List[int]:
    """The Collatz orbit of `n`, from `n` down to and including 1."""
    if n < 1:
        raise AlgorithmInputError("collatz", "The starting value must be a positive integer.", user_input=n)
    sequence = [n]
    while n != 1:
        n = n // 2 if n % 2 == 0 else 3 * n + 1
        sequence.append(n)
    return sequence
