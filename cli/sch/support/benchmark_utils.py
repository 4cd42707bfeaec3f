from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.random import Generator, default_rng

from schtree.algo import build_tree
from schtree.baseline import brute_force_knn_batch
from schtree.core.tree import PartitionTree
from schtree.queries import knn_bulk_search


@dataclass(frozen=True)
class QueryBenchmarkResult:
    elapsed_seconds: float
    queries: int
    k: int
    latency_ms: float
    queries_per_second: float
    build_seconds: float | None = None


@dataclass(frozen=True)
class BaselineComparison:
    name: str
    elapsed_seconds: float
    latency_ms: float
    queries_per_second: float
    mismatched_queries: int


def gaussian_points(rng: Generator, count: int, dimension: int, *, dtype=np.float64) -> np.ndarray:
    return rng.standard_normal(size=(count, dimension)).astype(dtype, copy=False)


def _timing(elapsed: float, queries: int) -> Tuple[float, float]:
    qps = queries / elapsed if elapsed > 0 else float("inf")
    latency = (elapsed / queries) * 1e3 if queries else 0.0
    return latency, qps


def benchmark_knn_latency(
    *,
    dimension: int,
    tree_points: int,
    query_count: int,
    k: int,
    seed: int,
    engine: Optional[str] = None,
    workers: Optional[int] = None,
    prebuilt_tree: PartitionTree | None = None,
    prebuilt_queries: np.ndarray | None = None,
) -> Tuple[PartitionTree, np.ndarray, QueryBenchmarkResult]:
    build_seconds: float | None = None
    if prebuilt_tree is None:
        points = gaussian_points(default_rng(seed), tree_points, dimension)
        start = time.perf_counter()
        tree = build_tree(points)
        build_seconds = time.perf_counter() - start
    else:
        tree = prebuilt_tree

    if prebuilt_queries is None:
        queries = gaussian_points(default_rng(seed + 1), query_count, tree.dimension)
    else:
        queries = np.asarray(prebuilt_queries, dtype=np.float64)

    start = time.perf_counter()
    knn_bulk_search(tree, queries, k, sort=True, workers=workers, engine=engine)
    elapsed = time.perf_counter() - start
    latency, qps = _timing(elapsed, int(queries.shape[0]))
    return tree, queries, QueryBenchmarkResult(
        elapsed_seconds=elapsed,
        queries=int(queries.shape[0]),
        k=k,
        latency_ms=latency,
        queries_per_second=qps,
        build_seconds=build_seconds,
    )


def run_brute_force_baseline(
    tree: PartitionTree,
    queries: np.ndarray,
    *,
    k: int,
    engine: Optional[str] = None,
) -> BaselineComparison:
    """Time the exhaustive search and count queries whose neighbours differ."""

    start = time.perf_counter()
    expected, _ = brute_force_knn_batch(tree.points, queries, k)
    elapsed = time.perf_counter() - start
    latency, qps = _timing(elapsed, int(queries.shape[0]))

    results = knn_bulk_search(tree, queries, k, sort=True, engine=engine)
    mismatched = sum(
        1
        for row, res in zip(expected, results)
        if res.indices.tolist() != row.tolist()
    )
    return BaselineComparison(
        name="brute-force",
        elapsed_seconds=elapsed,
        latency_ms=latency,
        queries_per_second=qps,
        mismatched_queries=mismatched,
    )


__all__ = [
    "BaselineComparison",
    "QueryBenchmarkResult",
    "benchmark_knn_latency",
    "gaussian_points",
    "run_brute_force_baseline",
]
