from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from numpy.random import default_rng

from schtree.baseline import brute_force_knn_batch
from schtree.core.tree import PartitionTree
from schtree.queries import knn_bulk_search


@dataclass(frozen=True)
class QueryMismatch:
    source: str
    position: int
    expected: Tuple[int, ...]
    actual: Tuple[int, ...]


@dataclass
class VerificationReport:
    k: int
    dataset_queries: int = 0
    random_queries: int = 0
    mismatches: List[QueryMismatch] = field(default_factory=list)

    @property
    def checked(self) -> int:
        return self.dataset_queries + self.random_queries

    @property
    def ok(self) -> bool:
        return not self.mismatches


def _compare(
    tree: PartitionTree,
    queries: np.ndarray,
    k: int,
    *,
    source: str,
    engine: Optional[str],
    workers: Optional[int],
) -> List[QueryMismatch]:
    expected, expected_dist = brute_force_knn_batch(tree.points, queries, k)
    results = knn_bulk_search(tree, queries, k, sort=True, engine=engine, workers=workers)
    mismatches: List[QueryMismatch] = []
    for pos, (row, row_dist, res) in enumerate(zip(expected, expected_dist, results)):
        actual = res.indices
        if actual.shape != row.shape or not np.array_equal(actual, row) or not np.allclose(
            res.distances, row_dist, rtol=1e-9, atol=1e-12
        ):
            mismatches.append(
                QueryMismatch(
                    source=source,
                    position=pos,
                    expected=tuple(int(i) for i in row),
                    actual=tuple(int(i) for i in actual),
                )
            )
    return mismatches


def verify_against_baseline(
    tree: PartitionTree,
    *,
    k: int,
    random_queries: int = 0,
    low: float = 0.0,
    high: float = 100.0,
    seed: int = 0,
    include_dataset: bool = True,
    engine: Optional[str] = None,
    workers: Optional[int] = None,
) -> VerificationReport:
    """Compare tree results with the exhaustive search.

    Every stored point is used as a query, followed by ``random_queries``
    points drawn uniformly from ``[low, high)`` in every coordinate.
    """

    report = VerificationReport(k=k)
    if include_dataset:
        queries = np.asarray(tree.points, dtype=np.float64)
        report.mismatches.extend(
            _compare(tree, queries, k, source="dataset", engine=engine, workers=workers)
        )
        report.dataset_queries = int(queries.shape[0])
    if random_queries > 0:
        rng = default_rng(seed)
        queries = rng.uniform(low, high, size=(random_queries, tree.dimension))
        report.mismatches.extend(
            _compare(tree, queries, k, source="random", engine=engine, workers=workers)
        )
        report.random_queries = random_queries
    return report


__all__ = ["QueryMismatch", "VerificationReport", "verify_against_baseline"]
