from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from schtree.core.geometry import inside_all, pack_constraints
from schtree.core.node import LeafNode, Node

_ROUNDING_EPS = 8.0 * float(np.finfo(np.float64).eps)


class TreeInvariantError(AssertionError):
    """Raised by :func:`validate_tree` when a built tree is inconsistent."""


@dataclass(frozen=True)
class TreeBuildStats:
    num_leaves: int = 0
    depth: int = 0
    forced_leaves: int = 0
    num_constraints: int = 0


@dataclass(frozen=True)
class PackedLeaves:
    """CSR view of every leaf's point indices and refined constraints.

    Leaf ``l`` owns ``point_indices[point_indptr[l]:point_indptr[l + 1]]`` and
    the constraint rows ``constraint_indptr[l]:constraint_indptr[l + 1]``.
    """

    point_indptr: np.ndarray
    point_indices: np.ndarray
    constraint_indptr: np.ndarray
    normals: np.ndarray
    offsets: np.ndarray
    less_equal: np.ndarray
    owners: np.ndarray

    @property
    def num_leaves(self) -> int:
        return int(self.point_indptr.shape[0] - 1)

    @classmethod
    def from_leaves(cls, leaves: Sequence[LeafNode], dimension: int) -> "PackedLeaves":
        point_counts = [leaf.size for leaf in leaves]
        constraint_counts = [len(leaf.constraints) for leaf in leaves]
        point_indptr = np.concatenate([[0], np.cumsum(point_counts, dtype=np.int64)])
        constraint_indptr = np.concatenate([[0], np.cumsum(constraint_counts, dtype=np.int64)])
        if leaves:
            point_indices = np.concatenate([leaf.indices for leaf in leaves]).astype(np.int64)
        else:
            point_indices = np.empty(0, dtype=np.int64)
        all_constraints = [ct for leaf in leaves for ct in leaf.constraints]
        normals, offsets, less_equal = pack_constraints(all_constraints, dimension)
        owners = np.repeat(np.arange(len(leaves), dtype=np.int64), constraint_counts)
        return cls(
            point_indptr=point_indptr.astype(np.int64),
            point_indices=point_indices,
            constraint_indptr=constraint_indptr.astype(np.int64),
            normals=normals,
            offsets=offsets,
            less_equal=less_equal,
            owners=owners,
        )


@dataclass(frozen=True, eq=False)
class PartitionTree:
    """Immutable semi-convex-hull partition tree over ``points``.

    Unless the tree was built with ``copy=True`` it borrows the caller's
    array: the caller must keep it alive and unmodified while the tree is in
    use. ``points`` is exposed as a read-only view either way.
    """

    points: np.ndarray
    root: Node
    leaves: Tuple[LeafNode, ...]
    leaf_size: int
    packed: PackedLeaves
    owns_points: bool
    stats: TreeBuildStats

    @property
    def num_points(self) -> int:
        return int(self.points.shape[0])

    @property
    def dimension(self) -> int:
        return int(self.points.shape[1])

    @property
    def num_leaves(self) -> int:
        return len(self.leaves)

    @property
    def bound_slack(self) -> float:
        """Relative rounding margin subtracted from every constraint excess."""

        return _ROUNDING_EPS * self.dimension

    def leaf_lower_bounds(self, query: Any) -> np.ndarray:
        """Vectorised ``distance_to_region(query, leaf)`` for every leaf.

        Each excess ``a·q - b`` is lowered by ``bound_slack * (|a·q| + |b|)``
        so that rounding in the projections never lifts a bound above the
        computed distance to a point lying on the hyperplane.
        """

        packed = self.packed
        bounds = np.zeros(packed.num_leaves, dtype=np.float64)
        if packed.offsets.shape[0] == 0:
            return bounds
        values = packed.normals @ np.asarray(query, dtype=np.float64)
        excess = np.where(packed.less_equal, values - packed.offsets, packed.offsets - values)
        excess -= self.bound_slack * (np.abs(values) + np.abs(packed.offsets))
        np.maximum.at(bounds, packed.owners, np.maximum(excess, 0.0))
        return bounds

    def validate(self) -> None:
        validate_tree(self)

    def describe(self) -> Dict[str, Any]:
        sizes = [leaf.size for leaf in self.leaves]
        return {
            "num_points": self.num_points,
            "dimension": self.dimension,
            "leaf_size": self.leaf_size,
            "num_leaves": self.stats.num_leaves,
            "depth": self.stats.depth,
            "forced_leaves": self.stats.forced_leaves,
            "num_constraints": self.stats.num_constraints,
            "min_leaf_points": min(sizes) if sizes else 0,
            "max_leaf_points": max(sizes) if sizes else 0,
            "owns_points": self.owns_points,
            "dtype": str(self.points.dtype),
        }


def validate_tree(tree: PartitionTree) -> None:
    """Check that leaves partition ``[0, N)`` and contain their own points."""

    total = 0
    seen = np.zeros(tree.num_points, dtype=bool)
    for leaf_id, leaf in enumerate(tree.leaves):
        indices = np.asarray(leaf.indices, dtype=np.int64)
        if indices.size and (indices.min() < 0 or indices.max() >= tree.num_points):
            raise TreeInvariantError(f"Leaf {leaf_id} references an index outside [0, {tree.num_points}).")
        if np.any(seen[indices]) or np.unique(indices).size != indices.size:
            raise TreeInvariantError(f"Leaf {leaf_id} shares point indices with another leaf.")
        seen[indices] = True
        total += indices.size

        leaf_points = tree.points[indices]
        for ct_id, constraint in enumerate(leaf.constraints):
            mask = inside_all(leaf_points, constraint)
            if not np.all(mask):
                outside = indices[~mask]
                raise TreeInvariantError(
                    f"Leaf {leaf_id} constraint {ct_id} excludes points {outside.tolist()[:8]}."
                )

    if total != tree.num_points:
        raise TreeInvariantError(f"Leaves hold {total} points, expected {tree.num_points}.")


__all__ = [
    "PackedLeaves",
    "PartitionTree",
    "TreeBuildStats",
    "TreeInvariantError",
    "validate_tree",
]
