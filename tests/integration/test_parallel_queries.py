from concurrent.futures import ThreadPoolExecutor

import numpy as np
from numpy.random import default_rng

from schtree.algo import build_tree
from schtree.queries import knn_bulk_search, knn_search
from tests.utils.datasets import gaussian_points


def test_concurrent_single_queries_share_one_tree():
    rng = default_rng(11)
    tree = build_tree(gaussian_points(rng, 4_000, 4))
    queries = gaussian_points(rng, 48, 4)
    sequential = [knn_search(tree, q, 9, sort=True).indices.tolist() for q in queries]

    def _run(query):
        return knn_search(tree, query, 9, sort=True, engine="numba").indices.tolist()

    with ThreadPoolExecutor(max_workers=6) as pool:
        concurrent = list(pool.map(_run, queries))

    assert concurrent == sequential


def test_bulk_search_is_independent_of_worker_count():
    rng = default_rng(12)
    tree = build_tree(gaussian_points(rng, 2_000, 3))
    queries = gaussian_points(rng, 100, 3)

    single = knn_bulk_search(tree, queries, 7, sort=True, workers=1)
    many = knn_bulk_search(tree, queries, 7, sort=True, workers=8)

    for left, right in zip(single, many):
        np.testing.assert_array_equal(left.indices, right.indices)
        np.testing.assert_array_equal(left.distances, right.distances)
