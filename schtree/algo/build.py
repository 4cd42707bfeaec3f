from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from schtree import config as sch_config
from schtree.core.backend import TreeBackend, get_runtime_backend
from schtree.core.geometry import Constraint, Hyperplane, point_distances, project
from schtree.core.node import InternalNode, LeafNode, Node, iter_leaves, tree_depth
from schtree.core.tree import PackedLeaves, PartitionTree, TreeBuildStats
from schtree.logging import get_logger

LOGGER = get_logger("algo.build")


def leaf_size_threshold(
    num_points: int,
    *,
    leaf_fraction: float = sch_config.DEFAULT_LEAF_FRACTION,
    min_leaf_size: int = sch_config.DEFAULT_MIN_LEAF_SIZE,
) -> int:
    """Largest point count a node may hold before it is split."""

    return max(min_leaf_size, max(1, int(round(leaf_fraction * num_points))))


def _prepare_points(points: Any, *, copy: bool, backend: TreeBackend) -> Tuple[np.ndarray, bool]:
    dtype = np.dtype(backend.default_float)
    if copy:
        array = np.array(points, dtype=dtype, copy=True)
        owns = True
    else:
        array = np.asarray(points)
        owns = array is not points
        if not np.issubdtype(array.dtype, np.floating):
            array = array.astype(dtype)
            owns = True
    if array.ndim != 2:
        raise ValueError(f"points must be a 2-D array of shape (N, D), got shape {array.shape}.")
    if array.shape[0] == 0:
        raise ValueError("Cannot build a tree from an empty point set.")
    if array.shape[1] == 0:
        raise ValueError("points must have at least one coordinate.")
    if not np.all(np.isfinite(array)):
        raise ValueError("points must be finite.")
    view = array.view()
    view.flags.writeable = False
    return view, owns


def choose_split(points: np.ndarray, indices: np.ndarray) -> Hyperplane | None:
    """Two-hop farthest-point bisector for the points in ``indices``.

    Starting from the first index, find the farthest point ``P`` and then the
    point ``Q`` farthest from ``P``. The hyperplane bisects ``PQ`` with its
    normal pointing towards ``P``. Returns ``None`` when ``P`` and ``Q``
    coincide.
    """

    node_points = points[indices]
    from_anchor = point_distances(node_points, node_points[0])
    from_anchor[0] = -1.0
    p_pos = int(np.argmax(from_anchor))

    from_p = point_distances(node_points, node_points[p_pos])
    from_p[p_pos] = -1.0
    q_pos = int(np.argmax(from_p))

    return Hyperplane.through_midpoint(node_points[p_pos], node_points[q_pos])


def refine_constraints(
    points: np.ndarray, indices: np.ndarray, constraints: Sequence[Constraint]
) -> Tuple[Constraint, ...]:
    """Pull every constraint of a leaf onto its closest contained point.

    Offsets are first widened so that every point of the leaf satisfies the
    constraint, then moved onto the extreme projection on the constrained
    side. The result is the tightest half-space along each inherited
    direction that still contains the whole leaf.
    """

    if indices.size == 0:
        return tuple(constraints)
    leaf_points = points[indices]
    refined: List[Constraint] = []
    for constraint in constraints:
        values = project(leaf_points, constraint.hyperplane)
        if constraint.less_equal:
            extreme = float(values.max())
            widened = extreme > constraint.offset
        else:
            extreme = float(values.min())
            widened = extreme < constraint.offset
        if widened:
            LOGGER.debug(
                "Widened constraint from %r to %r for a leaf of %d points.",
                constraint.offset,
                extreme,
                indices.size,
            )
        # every projection lies on the constrained side of the extreme one
        refined.append(constraint.with_offset(extreme))
    return tuple(refined)


@dataclass
class _Pending:
    indices: np.ndarray
    constraints: Tuple[Constraint, ...]


def split_tree(points: np.ndarray, indices: np.ndarray, *, leaf_size: int) -> Tuple[Node, int]:
    """Recursively partition ``indices`` and return ``(root, forced_leaves)``.

    The recursion runs on an explicit stack. Node ids are handed out in
    visiting order, so children always carry larger ids than their parent and
    the immutable nodes can be assembled in reverse id order.
    """

    leaves: Dict[int, LeafNode] = {}
    splits: Dict[int, Tuple[Hyperplane, int, int]] = {}
    forced = 0
    next_id = 1
    stack: List[Tuple[int, _Pending]] = [(0, _Pending(indices, ()))]

    while stack:
        node_id, pending = stack.pop()
        if pending.indices.shape[0] <= leaf_size:
            leaves[node_id] = LeafNode(
                indices=pending.indices,
                constraints=refine_constraints(points, pending.indices, pending.constraints),
            )
            continue

        hyperplane = choose_split(points, pending.indices)
        if hyperplane is not None:
            go_left = project(points[pending.indices], hyperplane) <= hyperplane.offset
            left_idx = pending.indices[go_left]
            right_idx = pending.indices[~go_left]
        if hyperplane is None or left_idx.size == 0 or right_idx.size == 0:
            LOGGER.debug(
                "Degenerate split over %d points; keeping an oversized leaf.",
                pending.indices.shape[0],
            )
            forced += 1
            leaves[node_id] = LeafNode(
                indices=pending.indices,
                constraints=refine_constraints(points, pending.indices, pending.constraints),
                forced=True,
            )
            continue

        left_id, right_id = next_id, next_id + 1
        next_id += 2
        splits[node_id] = (hyperplane, left_id, right_id)
        left_ct = Constraint(hyperplane, less_equal=True)
        right_ct = Constraint(hyperplane, less_equal=False)
        stack.append((right_id, _Pending(right_idx, pending.constraints + (right_ct,))))
        stack.append((left_id, _Pending(left_idx, pending.constraints + (left_ct,))))

    nodes: Dict[int, Node] = dict(leaves)
    for node_id in sorted(splits, reverse=True):
        hyperplane, left_id, right_id = splits[node_id]
        nodes[node_id] = InternalNode(
            left=nodes.pop(left_id), right=nodes.pop(right_id), hyperplane=hyperplane
        )
    return nodes[0], forced


def collect_leaves(root: Node) -> Tuple[LeafNode, ...]:
    return tuple(iter_leaves(root))


def build_tree(
    points: Any,
    *,
    copy: bool = False,
    backend: TreeBackend | None = None,
    leaf_fraction: float | None = None,
    min_leaf_size: int | None = None,
) -> PartitionTree:
    """Build a :class:`PartitionTree` over ``points``.

    Parameters
    ----------
    points:
        ``(N, D)`` array of finite coordinates, ``N >= 1``.
    copy:
        Take a private copy (cast to the backend's float dtype) instead of
        borrowing the caller's array.
    backend:
        Backend whose ``default_float`` is used when copying or converting
        non-float input. Defaults to the runtime backend, so
        ``SCHTREE_PRECISION`` picks the dtype of an owned copy.
    leaf_fraction, min_leaf_size:
        Override the runtime configuration for the leaf-size threshold.
    """

    runtime = sch_config.runtime_config()
    fraction = runtime.leaf_fraction if leaf_fraction is None else float(leaf_fraction)
    floor = runtime.min_leaf_size if min_leaf_size is None else int(min_leaf_size)
    if not 0.0 < fraction <= 1.0:
        raise ValueError(f"leaf_fraction must lie in (0, 1], got {fraction}.")
    if floor < 1:
        raise ValueError(f"min_leaf_size must be positive, got {floor}.")

    array, owns = _prepare_points(points, copy=copy, backend=backend or get_runtime_backend())
    num_points = int(array.shape[0])
    leaf_size = leaf_size_threshold(num_points, leaf_fraction=fraction, min_leaf_size=floor)

    root, forced = split_tree(array, np.arange(num_points, dtype=np.int64), leaf_size=leaf_size)
    leaves = collect_leaves(root)
    packed = PackedLeaves.from_leaves(leaves, int(array.shape[1]))
    stats = TreeBuildStats(
        num_leaves=len(leaves),
        depth=tree_depth(root),
        forced_leaves=forced,
        num_constraints=int(packed.offsets.shape[0]),
    )
    LOGGER.debug(
        "Built tree over %d points (dim=%d): %d leaves, depth %d, leaf size %d, %d forced.",
        num_points,
        array.shape[1],
        stats.num_leaves,
        stats.depth,
        leaf_size,
        forced,
    )
    return PartitionTree(
        points=array,
        root=root,
        leaves=leaves,
        leaf_size=leaf_size,
        packed=packed,
        owns_points=owns,
        stats=stats,
    )


__all__ = [
    "build_tree",
    "choose_split",
    "collect_leaves",
    "leaf_size_threshold",
    "refine_constraints",
    "split_tree",
]
