import numpy as np
import pytest
from numpy.random import default_rng

from schtree import config as sch_config
from schtree.baseline import brute_force_knn, brute_force_knn_batch
from schtree.core.backend import TreeBackend, get_runtime_backend
from tests.utils.datasets import gaussian_points


def test_brute_force_orders_by_distance_then_index():
    points = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [3.0, 3.0]])
    indices, distances = brute_force_knn_batch(points, [0.0, 0.0], 3, backend=TreeBackend.numpy())

    assert indices.tolist() == [[0, 1, 2]]
    np.testing.assert_allclose(distances, [[1.0, 1.0, 1.0]])


def test_brute_force_truncates_to_point_count():
    points = gaussian_points(default_rng(0), 4, 2)
    result = brute_force_knn(points, np.zeros(2), 10, backend=TreeBackend.numpy())

    assert len(result) == 4
    assert result.is_sorted


def test_chunking_does_not_change_results():
    rng = default_rng(3)
    points = gaussian_points(rng, 200, 4)
    queries = gaussian_points(rng, 37, 4)
    backend = TreeBackend.numpy()

    whole, whole_dist = brute_force_knn_batch(points, queries, 6, backend=backend)
    chunked, chunked_dist = brute_force_knn_batch(points, queries, 6, backend=backend, chunk_size=5)

    np.testing.assert_array_equal(whole, chunked)
    np.testing.assert_allclose(whole_dist, chunked_dist)


def test_brute_force_rejects_bad_input():
    points = gaussian_points(default_rng(0), 10, 3)
    with pytest.raises(ValueError):
        brute_force_knn_batch(points, np.zeros((2, 2)), 3)
    with pytest.raises(ValueError):
        brute_force_knn_batch(points, np.zeros(3), 0)


def test_runtime_backend_follows_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SCHTREE_PRECISION", "float32")
    sch_config.reset_runtime_config_cache()
    try:
        backend = get_runtime_backend()
        assert backend.name == "numpy"
        assert backend.default_float == np.float32
    finally:
        monkeypatch.delenv("SCHTREE_PRECISION")
        sch_config.reset_runtime_config_cache()


def test_tree_backend_rejects_precision():
    with pytest.raises(ValueError):
        TreeBackend.numpy(precision="float16")


def test_jax_backend_matches_numpy():
    pytest.importorskip("jax")
    rng = default_rng(12)
    points = gaussian_points(rng, 150, 3)
    queries = gaussian_points(rng, 9, 3)

    expected, expected_dist = brute_force_knn_batch(points, queries, 5, backend=TreeBackend.numpy())
    actual, actual_dist = brute_force_knn_batch(points, queries, 5, backend=TreeBackend.jax())

    np.testing.assert_array_equal(actual, expected)
    np.testing.assert_allclose(actual_dist, expected_dist, rtol=1e-10)


def test_float32_precision_reaches_build_and_verification(monkeypatch: pytest.MonkeyPatch):
    from cli.sch.support.verify_utils import verify_against_baseline
    from schtree.algo import build_tree

    monkeypatch.setenv("SCHTREE_PRECISION", "float32")
    sch_config.reset_runtime_config_cache()
    try:
        assert sch_config.runtime_config().precision == "float32"
        points = default_rng(6).uniform(0.0, 100.0, size=(400, 13))

        tree = build_tree(points, copy=True)
        assert tree.points.dtype == np.float32
        assert tree.owns_points
        assert build_tree(np.arange(12).reshape(6, 2)).points.dtype == np.float32

        report = verify_against_baseline(tree, k=10, random_queries=30, seed=2)
        assert report.checked == 430
        assert report.ok, report.mismatches[:3]
    finally:
        monkeypatch.delenv("SCHTREE_PRECISION")
        sch_config.reset_runtime_config_cache()
