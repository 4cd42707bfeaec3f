"""Hyperplanes, half-space constraints and the distances used for pruning.

Every projection ``a·x`` in the package goes through :func:`project` so that
the builder, the refinement pass and the verification pass agree bit-for-bit
on which side of a hyperplane a stored point lies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import numpy as np


@dataclass(frozen=True)
class Hyperplane:
    """The set ``{x : a·x = b}`` with a unit-norm normal ``a``."""

    normal: np.ndarray
    offset: float

    @classmethod
    def through_midpoint(cls, p: np.ndarray, q: np.ndarray) -> "Hyperplane | None":
        """Bisector of ``p`` and ``q`` with the normal pointing from ``q`` to ``p``.

        Returns ``None`` when the two points coincide.
        """

        direction = np.asarray(p, dtype=np.float64) - np.asarray(q, dtype=np.float64)
        norm = float(np.sqrt(np.dot(direction, direction)))
        if norm == 0.0 or not np.isfinite(norm):
            return None
        normal = direction / norm
        midpoint = (np.asarray(p, dtype=np.float64) + np.asarray(q, dtype=np.float64)) / 2.0
        return cls(normal=normal, offset=float(np.dot(normal, midpoint)))


@dataclass(frozen=True)
class Constraint:
    """Half-space ``a·x <= b`` (``less_equal``) or ``a·x >= b``."""

    hyperplane: Hyperplane
    less_equal: bool

    @property
    def normal(self) -> np.ndarray:
        return self.hyperplane.normal

    @property
    def offset(self) -> float:
        return self.hyperplane.offset

    def with_offset(self, offset: float) -> "Constraint":
        return Constraint(Hyperplane(self.hyperplane.normal, float(offset)), self.less_equal)

    def complement(self) -> "Constraint":
        return Constraint(self.hyperplane, not self.less_equal)


def project(points: np.ndarray, hyperplane: Hyperplane) -> np.ndarray:
    """Return ``a·x`` for a single point or every row of ``points``."""

    return np.asarray(points, dtype=np.float64) @ hyperplane.normal


def point_distance(p: Any, q: Any) -> float:
    diff = np.asarray(p, dtype=np.float64) - np.asarray(q, dtype=np.float64)
    return float(np.sqrt(np.sum(diff * diff)))


def point_distances(points: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Euclidean distance from ``query`` to every row of ``points``."""

    diff = np.asarray(points, dtype=np.float64) - np.asarray(query, dtype=np.float64)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def hyperplane_distance(p: Any, hyperplane: Hyperplane) -> float:
    return abs(float(project(p, hyperplane)) - hyperplane.offset)


def inside(p: Any, constraint: Constraint) -> bool:
    value = float(project(p, constraint.hyperplane))
    if constraint.less_equal:
        return value <= constraint.offset
    return value >= constraint.offset


def inside_all(points: np.ndarray, constraint: Constraint) -> np.ndarray:
    """Vectorised :func:`inside` over the rows of ``points``."""

    values = project(points, constraint.hyperplane)
    if constraint.less_equal:
        return values <= constraint.offset
    return values >= constraint.offset


def _constraints_of(region: Any) -> Iterable[Constraint]:
    return getattr(region, "constraints", region)


def distance_to_region(p: Any, region: Any) -> float:
    """Lower bound on the distance from ``p`` to any point of ``region``.

    ``region`` is a node carrying ``constraints`` or a plain sequence of
    constraints. The bound is zero when ``p`` satisfies every constraint and
    otherwise the largest hyperplane distance among the violated ones.
    """

    dist = 0.0
    for constraint in _constraints_of(region):
        if not inside(p, constraint):
            dist = max(dist, hyperplane_distance(p, constraint.hyperplane))
    return dist


def pack_constraints(constraints: Sequence[Constraint], dimension: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Stack constraints into ``(normals, offsets, less_equal)`` arrays."""

    count = len(constraints)
    normals = np.empty((count, dimension), dtype=np.float64)
    offsets = np.empty(count, dtype=np.float64)
    less_equal = np.empty(count, dtype=np.bool_)
    for row, constraint in enumerate(constraints):
        normals[row] = constraint.normal
        offsets[row] = constraint.offset
        less_equal[row] = constraint.less_equal
    return normals, offsets, less_equal


__all__ = [
    "Hyperplane",
    "Constraint",
    "project",
    "point_distance",
    "point_distances",
    "hyperplane_distance",
    "inside",
    "inside_all",
    "distance_to_region",
    "pack_constraints",
]
