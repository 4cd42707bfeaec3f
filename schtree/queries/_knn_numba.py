from __future__ import annotations

import numpy as np
from numba import njit
from typing import Tuple

# The result set is a fixed-size max-heap over (distance, index) pairs held in
# two parallel arrays. The index breaks distance ties so results match the
# pure Python engine exactly.

# ------------------------------------------------------------------------------
# Heap Utils
# ------------------------------------------------------------------------------

@njit(cache=True, nogil=True)
def _greater(d1: float, i1: int, d2: float, i2: int) -> bool:
    if d1 == d2:
        return i1 > i2
    return d1 > d2


@njit(cache=True, nogil=True)
def _sift_up(keys: np.ndarray, vals: np.ndarray, pos: int) -> None:
    key = keys[pos]
    val = vals[pos]
    while pos > 0:
        parent = (pos - 1) >> 1
        if not _greater(key, val, keys[parent], vals[parent]):
            break
        keys[pos] = keys[parent]
        vals[pos] = vals[parent]
        pos = parent
    keys[pos] = key
    vals[pos] = val


@njit(cache=True, nogil=True)
def _sift_down(keys: np.ndarray, vals: np.ndarray, size: int) -> None:
    key = keys[0]
    val = vals[0]
    pos = 0
    while (pos << 1) + 1 < size:
        child = (pos << 1) + 1
        if child + 1 < size and _greater(keys[child + 1], vals[child + 1], keys[child], vals[child]):
            child += 1
        if not _greater(keys[child], vals[child], key, val):
            break
        keys[pos] = keys[child]
        vals[pos] = vals[child]
        pos = child
    keys[pos] = key
    vals[pos] = val


@njit(cache=True, nogil=True)
def _push_bounded(
    keys: np.ndarray, vals: np.ndarray, size: int, k: int, key: float, val: int
) -> int:
    """Offer (key, val) to a bounded max-heap. Returns new size."""
    if size < k:
        keys[size] = key
        vals[size] = val
        _sift_up(keys, vals, size)
        return size + 1
    if _greater(keys[0], vals[0], key, val):
        keys[0] = key
        vals[0] = val
        _sift_down(keys, vals, size)
    return size


@njit(cache=True, nogil=True)
def _drain_sorted(keys: np.ndarray, vals: np.ndarray, size: int) -> None:
    """In-place heapsort: ascending (key, val) order in [0, size)."""
    end = size
    while end > 1:
        end -= 1
        tmp_key = keys[0]
        tmp_val = vals[0]
        keys[0] = keys[end]
        vals[0] = vals[end]
        keys[end] = tmp_key
        vals[end] = tmp_val
        _sift_down(keys, vals, end)

# ------------------------------------------------------------------------------
# Search
# ------------------------------------------------------------------------------

@njit(cache=True, nogil=True)
def leaf_lower_bounds_kernel(
    query: np.ndarray,
    normals: np.ndarray,
    offsets: np.ndarray,
    less_equal: np.ndarray,
    constraint_indptr: np.ndarray,
    slack: float,
) -> np.ndarray:
    num_leaves = constraint_indptr.shape[0] - 1
    dim = query.shape[0]
    bounds = np.zeros(num_leaves, dtype=np.float64)
    for leaf in range(num_leaves):
        best = 0.0
        for row in range(constraint_indptr[leaf], constraint_indptr[leaf + 1]):
            value = 0.0
            for j in range(dim):
                value += normals[row, j] * query[j]
            if less_equal[row]:
                excess = value - offsets[row]
            else:
                excess = offsets[row] - value
            excess -= slack * (abs(value) + abs(offsets[row]))
            if excess > best:
                best = excess
        bounds[leaf] = best
    return bounds


@njit(cache=True, nogil=True)
def knn_search_kernel(
    points: np.ndarray,
    query: np.ndarray,
    k: int,
    point_indptr: np.ndarray,
    point_indices: np.ndarray,
    normals: np.ndarray,
    offsets: np.ndarray,
    less_equal: np.ndarray,
    constraint_indptr: np.ndarray,
    slack: float,
) -> Tuple[np.ndarray, np.ndarray, int, int]:
    """Branch-and-bound k-NN over packed leaves.

    Returns ``(indices, distances, count, visited_leaves)`` with the first
    ``count`` entries sorted ascending by (distance, index).
    """
    bounds = leaf_lower_bounds_kernel(
        query, normals, offsets, less_equal, constraint_indptr, slack
    )
    order = np.argsort(bounds, kind="mergesort")

    keys = np.empty(k, dtype=np.float64)
    vals = np.empty(k, dtype=np.int64)
    size = 0
    visited = 0
    dim = query.shape[0]

    for pos in range(order.shape[0]):
        leaf = order[pos]
        if size >= k and bounds[leaf] > keys[0]:
            break
        visited += 1
        for slot in range(point_indptr[leaf], point_indptr[leaf + 1]):
            idx = point_indices[slot]
            acc = 0.0
            for j in range(dim):
                diff = points[idx, j] - query[j]
                acc += diff * diff
            size = _push_bounded(keys, vals, size, k, np.sqrt(acc), idx)

    _drain_sorted(keys, vals, size)
    return vals, keys, size, visited
