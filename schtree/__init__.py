"""schtree: exact k-nearest-neighbour search with a semi-convex-hull tree.

Quick Start
-----------
>>> from schtree import SchTree
>>>
>>> tree = SchTree().fit(points)
>>> neighbors = tree.knn(query_points, k=10)
>>> neighbors, distances = tree.knn(query_points, k=10, return_distances=True)

Lower-level entry points operate on a :class:`PartitionTree` directly:

>>> from schtree import build_tree, knn_search, validate_tree
>>> tree = build_tree(points)
>>> validate_tree(tree)
>>> result = knn_search(tree, query, k=5, sort=True)

Classes
-------
SchTree : Main interface for building an index and running k-NN queries.
PartitionTree : Immutable tree produced by :func:`build_tree`.
KnnResult : Bounded top-k container returned by the query functions.
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("schtree")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"

from .api import SchTree
from .algo import build_tree
from .baseline import brute_force_knn, brute_force_knn_batch
from .core import (
    Constraint,
    Hyperplane,
    InternalNode,
    KnnResult,
    LeafNode,
    Neighbor,
    PartitionTree,
    TreeBackend,
    TreeInvariantError,
    distance_to_region,
    validate_tree,
)
from .queries import knn_bulk_search, knn_search

__all__ = [
    "__version__",
    "SchTree",
    "build_tree",
    "knn_search",
    "knn_bulk_search",
    "validate_tree",
    "brute_force_knn",
    "brute_force_knn_batch",
    "Constraint",
    "Hyperplane",
    "InternalNode",
    "KnnResult",
    "LeafNode",
    "Neighbor",
    "PartitionTree",
    "TreeBackend",
    "TreeInvariantError",
    "distance_to_region",
]
