"""Exhaustive k-NN used to cross-check tree results."""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np

from schtree.core.backend import TreeBackend, get_runtime_backend
from schtree.core.knn_result import KnnResult

_BLOCK_ELEMENTS = 1 << 22


def _pairwise_distances(backend: TreeBackend, queries: np.ndarray, points: np.ndarray) -> np.ndarray:
    xp = backend.xp
    q = backend.asarray(queries, dtype=backend.default_float)
    p = backend.asarray(points, dtype=backend.default_float)
    diff = q[:, None, :] - p[None, :, :]
    return np.asarray(backend.to_numpy(xp.sqrt(xp.sum(diff * diff, axis=-1))), dtype=np.float64)


def _rank_row(distances: np.ndarray, k: int) -> np.ndarray:
    # lexsort sorts by the last key first: distance, then index
    order = np.lexsort((np.arange(distances.shape[0]), distances))
    return order[:k]


def brute_force_knn_batch(
    points: Any,
    queries: Any,
    k: int,
    *,
    backend: TreeBackend | None = None,
    chunk_size: int | None = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(indices, distances)`` of shape ``(Q, min(k, N))``.

    Rows are ordered by ascending distance with ties broken by index. Without
    an explicit ``backend`` the runtime backend is used at float64 precision,
    matching the float64 distances the tree engines compute.
    Distances are computed ``chunk_size`` queries at a time; by default a
    chunk holds roughly ``_BLOCK_ELEMENTS`` coordinate differences.
    """

    if k < 1:
        raise ValueError(f"k must be positive, got {k}.")
    backend = backend or get_runtime_backend(precision="float64")
    points_np = np.asarray(points)
    queries_np = np.asarray(queries, dtype=np.float64)
    if queries_np.ndim == 1:
        queries_np = queries_np.reshape(1, -1)
    if points_np.ndim != 2 or queries_np.shape[1] != points_np.shape[1]:
        raise ValueError(
            f"Incompatible shapes: points {points_np.shape}, queries {queries_np.shape}."
        )

    width = min(k, points_np.shape[0])
    indices = np.empty((queries_np.shape[0], width), dtype=np.int64)
    distances = np.empty((queries_np.shape[0], width), dtype=np.float64)
    if chunk_size is None:
        chunk_size = _BLOCK_ELEMENTS // max(1, points_np.shape[0] * points_np.shape[1])
    step = max(1, int(chunk_size))
    for start in range(0, queries_np.shape[0], step):
        stop = min(start + step, queries_np.shape[0])
        block = _pairwise_distances(backend, queries_np[start:stop], points_np)
        for offset, row in enumerate(block):
            ranked = _rank_row(row, width)
            indices[start + offset] = ranked
            distances[start + offset] = row[ranked]
    return indices, distances


def brute_force_knn(
    points: Any,
    query: Any,
    k: int,
    *,
    backend: TreeBackend | None = None,
) -> KnnResult:
    """Sorted :class:`KnnResult` holding the exact ``k`` nearest points."""

    indices, distances = brute_force_knn_batch(points, query, k, backend=backend)
    result = KnnResult.from_pairs(k, indices[0], distances[0])
    return result.sort()


__all__ = ["brute_force_knn", "brute_force_knn_batch"]
