import numpy as np
import pytest
from numpy.random import default_rng

from schtree import SchTree
from schtree.baseline import brute_force_knn_batch
from schtree.core.backend import TreeBackend
from tests.utils.datasets import gaussian_points


def test_knn_matches_brute_force_batch():
    rng = default_rng(0)
    points = gaussian_points(rng, 800, 5)
    queries = gaussian_points(rng, 12, 5)

    index = SchTree(workers=2).fit(points)
    indices, distances = index.knn(queries, k=6, return_distances=True)
    expected, expected_dist = brute_force_knn_batch(points, queries, 6, backend=TreeBackend.numpy())

    np.testing.assert_array_equal(indices, expected)
    np.testing.assert_allclose(distances, expected_dist, rtol=1e-12, atol=1e-12)


def test_single_query_returns_flat_arrays():
    points = np.array([[0.0, 0.0], [1.0, 0.0], [5.0, 5.0]])
    index = SchTree(engine="numba").fit(points)

    indices = index.knn([0.9, 0.0], k=2)
    assert indices.tolist() == [1, 0]

    indices, distances = index.knn([0.9, 0.0], k=10, return_distances=True)
    assert indices.shape == (3,)
    assert distances[0] == pytest.approx(0.1)


def test_knn_result_is_sorted():
    index = SchTree().fit(gaussian_points(default_rng(1), 100, 3))
    result = index.knn_result(np.zeros(3), 4)
    assert result.is_sorted
    assert len(result) == 4


def test_unfitted_index_raises():
    index = SchTree()
    assert not index.is_fitted
    with pytest.raises(RuntimeError):
        index.knn(np.zeros(2), k=1)


def test_fit_copy_detaches_from_caller_array():
    points = gaussian_points(default_rng(2), 50, 2)
    index = SchTree().fit(points, copy=True)
    points[:] = 1e6

    assert index.tree.owns_points
    assert index.knn(np.zeros(2), k=1)[0] != -1
    assert np.all(np.abs(index.tree.points) < 1e3)
    index.validate()


def test_leaf_overrides_reach_the_builder():
    index = SchTree(leaf_fraction=0.5, min_leaf_size=1).fit(gaussian_points(default_rng(3), 40, 2))
    assert index.describe()["leaf_size"] == 20


def test_rejects_unknown_engine():
    with pytest.raises(ValueError):
        SchTree(engine="cuda")
