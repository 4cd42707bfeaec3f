from __future__ import annotations

import heapq
import math
from typing import Iterable, Iterator, List, NamedTuple, Tuple

import numpy as np


class Neighbor(NamedTuple):
    index: int
    distance: float

    @property
    def key(self) -> Tuple[float, int]:
        return (self.distance, self.index)


def _entry(index: int, distance: float) -> Tuple[float, int]:
    # heapq is a min-heap; negating both fields keeps the largest
    # (distance, index) pair at position 0.
    return (-distance, -index)


class KnnResult:
    """Bounded max-heap retaining the ``k`` smallest ``(distance, index)`` pairs.

    Candidates compare by distance with the index as tie-break, so two
    containers fed the same candidates in any order end up holding the same
    pairs. :meth:`sort` is a terminal step: it turns the heap into an
    ascending sequence and further inserts are rejected.
    """

    __slots__ = ("_k", "_heap", "_sorted")

    def __init__(self, k: int = 0) -> None:
        self._k = 0
        self._heap: List[Tuple[float, int]] = []
        self._sorted: List[Neighbor] | None = None
        self.set_k(k)

    @classmethod
    def from_pairs(
        cls, k: int, indices: Iterable[int], distances: Iterable[float]
    ) -> "KnnResult":
        result = cls(k)
        for index, distance in zip(indices, distances):
            result.insert(int(index), float(distance))
        return result

    @property
    def k(self) -> int:
        return self._k

    def set_k(self, k: int) -> None:
        """Grow the capacity; a smaller ``k`` leaves it unchanged."""

        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}.")
        self._k = max(int(k), self._k)

    def insert(self, index: int, distance: float) -> bool:
        if self._sorted is not None:
            raise RuntimeError("KnnResult has been sorted and no longer accepts inserts.")
        if self._k == 0:
            return False
        if len(self._heap) < self._k:
            heapq.heappush(self._heap, _entry(index, distance))
            return True
        worst_distance, worst_index = -self._heap[0][0], -self._heap[0][1]
        if (distance, index) < (worst_distance, worst_index):
            heapq.heapreplace(self._heap, _entry(index, distance))
            return True
        return False

    def max_distance(self) -> float:
        """Worst retained distance, or ``inf`` until the container is full.

        A zero-capacity container holds nothing and also reports ``inf``.
        """

        if not self.is_full() or len(self) == 0:
            return math.inf
        if self._sorted is not None:
            return self._sorted[-1].distance
        return -self._heap[0][0]

    def is_full(self) -> bool:
        return len(self) >= self._k

    def sort(self) -> "KnnResult":
        if self._sorted is None:
            self._sorted = sorted(self._neighbors(), key=lambda n: n.key)
            self._heap = []
        return self

    def sorted_view(self) -> Tuple[Neighbor, ...]:
        return tuple(self.sort()._sorted)

    @property
    def is_sorted(self) -> bool:
        return self._sorted is not None

    def _neighbors(self) -> List[Neighbor]:
        if self._sorted is not None:
            return list(self._sorted)
        return [Neighbor(-idx, -dist) for dist, idx in self._heap]

    @property
    def indices(self) -> np.ndarray:
        return np.asarray([n.index for n in self._neighbors()], dtype=np.int64)

    @property
    def distances(self) -> np.ndarray:
        return np.asarray([n.distance for n in self._neighbors()], dtype=np.float64)

    def __len__(self) -> int:
        if self._sorted is not None:
            return len(self._sorted)
        return len(self._heap)

    def __iter__(self) -> Iterator[Neighbor]:
        return iter(self._neighbors())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KnnResult):
            return NotImplemented
        if len(self) != len(other):
            return False
        mine = sorted(self._neighbors(), key=lambda n: n.key)
        theirs = sorted(other._neighbors(), key=lambda n: n.key)
        return mine == theirs

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "sorted" if self.is_sorted else "heap"
        return f"KnnResult(k={self._k}, size={len(self)}, {state})"


__all__ = ["KnnResult", "Neighbor"]
