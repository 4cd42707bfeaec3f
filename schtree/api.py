"""User-facing wrapper around the partition tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from schtree.algo.build import build_tree
from schtree.core.backend import TreeBackend
from schtree.core.knn_result import KnnResult
from schtree.core.tree import PartitionTree, validate_tree
from schtree.queries.knn import knn_bulk_search, knn_search, resolve_engine, results_to_arrays


@dataclass
class SchTree:
    """Exact k-NN index over a static point set.

    >>> tree = SchTree().fit(points)
    >>> neighbors = tree.knn(queries, k=10)
    >>> neighbors, distances = tree.knn(queries, k=10, return_distances=True)

    Unless ``fit`` is called with ``copy=True`` the index borrows ``points``;
    the array must then stay alive and unmodified while the index is used.
    """

    engine: Optional[str] = None
    workers: Optional[int] = None
    leaf_fraction: Optional[float] = None
    min_leaf_size: Optional[int] = None
    backend: Optional[TreeBackend] = None
    _tree: Optional[PartitionTree] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.engine is not None:
            self.engine = resolve_engine(self.engine)

    def fit(self, points: Any, *, copy: bool = False) -> "SchTree":
        self._tree = build_tree(
            points,
            copy=copy,
            backend=self.backend,
            leaf_fraction=self.leaf_fraction,
            min_leaf_size=self.min_leaf_size,
        )
        return self

    @property
    def tree(self) -> PartitionTree:
        if self._tree is None:
            raise RuntimeError("SchTree.fit must be called before querying.")
        return self._tree

    @property
    def is_fitted(self) -> bool:
        return self._tree is not None

    def knn_result(self, query: Any, k: int, *, sort: bool = True) -> KnnResult:
        return knn_search(self.tree, query, k, sort=sort, engine=self.engine)

    def knn_results(self, queries: Any, k: int, *, sort: bool = True) -> List[KnnResult]:
        return knn_bulk_search(
            self.tree, queries, k, sort=sort, workers=self.workers, engine=self.engine
        )

    def knn(
        self,
        queries: Any,
        k: int,
        *,
        return_distances: bool = False,
    ) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
        """Indices (and distances) of the ``k`` nearest points per query.

        A 1-D ``queries`` returns 1-D arrays; a ``(Q, D)`` batch returns
        ``(Q, min(k, N))`` arrays ordered by ascending distance.
        """

        arr = np.asarray(queries, dtype=np.float64)
        single = arr.ndim == 1
        batch = arr.reshape(1, -1) if single else arr
        indices, distances = results_to_arrays(self.knn_results(batch, k))
        if single:
            indices, distances = indices[0], distances[0]
        if return_distances:
            return indices, distances
        return indices

    def validate(self) -> None:
        validate_tree(self.tree)

    def describe(self) -> Dict[str, Any]:
        return self.tree.describe()


__all__ = ["SchTree"]
