# src/stemsim_core/simulation/history.py
"""
Bounded, time-stamped samples of derived quantities, kept for plotting.

The buffer is a FIFO keyed on count only: once `capacity` entries are held, each new
entry evicts the oldest. It is written by the session after each step and read by
renderers; nothing in it ever feeds back into a simulation state.
"""

import logging
from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Deque, Iterator, List, Mapping, Optional

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    t: float
    values: Mapping[str, float]

    def __getitem__(self, name: str) -> float:
        return self.values[name]


class HistoryBuffer:
    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}.")
        self._capacity = capacity
        self._entries: Deque[HistoryEntry] = deque(maxlen=capacity)
        self._evicted = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evicted(self) -> int:
        """Number of entries dropped from the front since the last clear."""
        return self._evicted

    def append(self, t: float, values: Mapping[str, float]) -> HistoryEntry:
        entry = HistoryEntry(t=float(t), values=MappingProxyType(dict(values)))
        if len(self._entries) == self._capacity:
            self._evicted += 1
        self._entries.append(entry)
        return entry

    def clear(self):
        self._entries.clear()
        self._evicted = 0

    @property
    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def last(self, n: int) -> List[HistoryEntry]:
        if n <= 0:
            return []
        return list(self._entries)[-n:]

    def since(self, t_min: float) -> List[HistoryEntry]:
        return [e for e in self._entries if e.t >= t_min]

    def times(self) -> np.ndarray:
        return np.fromiter((e.t for e in self._entries), dtype=float, count=len(self._entries))

    def column(self, name: str) -> np.ndarray:
        """All recorded values of `name`, oldest first. Raises KeyError for an unknown column."""
        return np.fromiter((e.values[name] for e in self._entries), dtype=float, count=len(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"HistoryBuffer(len={len(self)}, capacity={self._capacity}, evicted={self._evicted})"
