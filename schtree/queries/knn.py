from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, List, Optional

import numpy as np

from schtree import config as sch_config
from schtree.core.geometry import point_distances
from schtree.core.knn_result import KnnResult
from schtree.core.tree import PartitionTree
from schtree.logging import get_logger

LOGGER = get_logger("queries.knn")

_ENGINES = ("python", "numba")


def resolve_engine(engine: Optional[str]) -> str:
    if engine is None:
        return "numba" if sch_config.runtime_config().enable_numba else "python"
    engine = engine.strip().lower()
    if engine not in _ENGINES:
        raise ValueError(f"Unsupported engine '{engine}'. Expected one of {_ENGINES}.")
    return engine


def _check_k(k: Any) -> int:
    k_int = int(k)
    if k_int != k or k_int < 1:
        raise ValueError(f"k must be a positive integer, got {k!r}.")
    return k_int


def _prepare_query(tree: PartitionTree, query: Any) -> np.ndarray:
    arr = np.asarray(query, dtype=np.float64)
    if arr.shape != (tree.dimension,):
        raise ValueError(
            f"Query must have shape ({tree.dimension},), received {arr.shape}."
        )
    return arr


def _prepare_queries(tree: PartitionTree, queries: Any) -> np.ndarray:
    arr = np.asarray(queries, dtype=np.float64)
    if arr.ndim == 1 and arr.shape[0] == 0:
        arr = arr.reshape(0, tree.dimension)
    if arr.ndim != 2 or arr.shape[1] != tree.dimension:
        raise ValueError(
            f"Queries must have shape (Q, {tree.dimension}), received {arr.shape}."
        )
    return arr


def _search_python(tree: PartitionTree, query: np.ndarray, k: int) -> KnnResult:
    result = KnnResult(k)
    bounds = tree.leaf_lower_bounds(query)
    # stable sort keeps equal bounds in leaf order
    order = np.argsort(bounds, kind="stable")
    for leaf_id in order:
        if result.is_full() and bounds[leaf_id] > result.max_distance():
            break
        indices = tree.leaves[leaf_id].indices
        distances = point_distances(tree.points[indices], query)
        for index, distance in zip(indices.tolist(), distances.tolist()):
            result.insert(index, distance)
    return result


def _search_numba(tree: PartitionTree, query: np.ndarray, k: int) -> KnnResult:
    from schtree.queries._knn_numba import knn_search_kernel

    packed = tree.packed
    indices, distances, count, _ = knn_search_kernel(
        tree.points,
        query,
        k,
        packed.point_indptr,
        packed.point_indices,
        packed.normals,
        packed.offsets,
        packed.less_equal,
        packed.constraint_indptr,
        tree.bound_slack,
    )
    return KnnResult.from_pairs(k, indices[:count], distances[:count])


def knn_search(
    tree: PartitionTree,
    query: Any,
    k: int,
    *,
    sort: bool = False,
    engine: Optional[str] = None,
) -> KnnResult:
    """Exact k nearest neighbours of ``query`` among the tree's points.

    Leaves are visited in ascending order of their lower-bound distance; the
    scan stops at the first leaf whose bound exceeds the worst retained
    distance of a full result. Fewer than ``k`` neighbours are returned only
    when the tree holds fewer than ``k`` points.
    """

    k = _check_k(k)
    q = _prepare_query(tree, query)
    if resolve_engine(engine) == "numba":
        result = _search_numba(tree, q, k)
    else:
        result = _search_python(tree, q, k)
    if sort:
        result.sort()
    return result


def knn_bulk_search(
    tree: PartitionTree,
    queries: Any,
    k: int,
    *,
    sort: bool = False,
    workers: Optional[int] = None,
    engine: Optional[str] = None,
) -> List[KnnResult]:
    """Run :func:`knn_search` for every row of ``queries`` on a thread pool.

    The tree is read-only during queries and every worker writes its own
    output slot, so no locking is involved. Results follow input order.
    """

    k = _check_k(k)
    batch = _prepare_queries(tree, queries)
    engine_name = resolve_engine(engine)
    if workers is None:
        workers = sch_config.runtime_config().workers
    if workers is not None and workers < 1:
        raise ValueError(f"workers must be positive, got {workers}.")

    num_queries = int(batch.shape[0])
    results: List[Optional[KnnResult]] = [None] * num_queries
    if num_queries == 0:
        return []

    LOGGER.debug(
        "Bulk k-NN: %d queries, k=%d, engine=%s, workers=%s",
        num_queries,
        k,
        engine_name,
        workers,
    )
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(knn_search, tree, batch[i], k, sort=sort, engine=engine_name): i
            for i in range(num_queries)
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return results  # type: ignore[return-value]


def results_to_arrays(results: List[KnnResult]) -> tuple[np.ndarray, np.ndarray]:
    """Stack sorted results into ``(Q, k')`` index and distance arrays.

    ``k'`` is the largest result size; shorter rows are padded with ``-1``
    and ``inf``.
    """

    width = max((len(res) for res in results), default=0)
    indices = np.full((len(results), width), -1, dtype=np.int64)
    distances = np.full((len(results), width), np.inf, dtype=np.float64)
    for row, res in enumerate(results):
        ordered = res.sorted_view()
        indices[row, : len(ordered)] = [n.index for n in ordered]
        distances[row, : len(ordered)] = [n.distance for n in ordered]
    return indices, distances


__all__ = [
    "knn_bulk_search",
    "knn_search",
    "resolve_engine",
    "results_to_arrays",
]
