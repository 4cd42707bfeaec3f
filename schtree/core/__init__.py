"""Core data structures for the semi-convex-hull partition tree."""

from .backend import DEFAULT_BACKEND, TreeBackend, get_runtime_backend
from .geometry import (
    Constraint,
    Hyperplane,
    distance_to_region,
    hyperplane_distance,
    inside,
    point_distance,
    point_distances,
)
from .knn_result import KnnResult, Neighbor
from .node import InternalNode, LeafNode, Node
from .tree import PackedLeaves, PartitionTree, TreeBuildStats, TreeInvariantError, validate_tree

__all__ = [
    "DEFAULT_BACKEND",
    "TreeBackend",
    "get_runtime_backend",
    "Constraint",
    "Hyperplane",
    "distance_to_region",
    "hyperplane_distance",
    "inside",
    "point_distance",
    "point_distances",
    "KnnResult",
    "Neighbor",
    "InternalNode",
    "LeafNode",
    "Node",
    "PackedLeaves",
    "PartitionTree",
    "TreeBuildStats",
    "TreeInvariantError",
    "validate_tree",
]
