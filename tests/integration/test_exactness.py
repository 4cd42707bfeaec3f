import numpy as np
import pytest
from numpy.random import default_rng

from cli.sch.support.verify_utils import verify_against_baseline
from schtree.algo import build_tree
from schtree.core.tree import validate_tree
from tests.utils.datasets import uniform_points


def _clustered_points(rng, count: int, dimension: int) -> np.ndarray:
    centers = rng.uniform(0.0, 100.0, size=(8, dimension))
    labels = rng.integers(0, centers.shape[0], size=count)
    noise = rng.standard_normal(size=(count, dimension)) * 3.0
    return centers[labels] + noise


@pytest.mark.parametrize("engine", ["python", "numba"])
def test_thirteen_dimensional_dataset_matches_exhaustive_search(engine):
    rng = default_rng(2024)
    points = _clustered_points(rng, 1_500, 13)
    tree = build_tree(points)
    validate_tree(tree)

    report = verify_against_baseline(
        tree,
        k=100,
        random_queries=200,
        low=0.0,
        high=100.0,
        seed=7,
        engine=engine,
        workers=4,
    )

    assert report.dataset_queries == 1_500
    assert report.random_queries == 200
    assert report.ok, report.mismatches[:3]


def test_duplicate_heavy_dataset_matches_exhaustive_search():
    rng = default_rng(99)
    base = uniform_points(rng, 40, 4, high=10.0)
    points = base[rng.integers(0, base.shape[0], size=600)]
    tree = build_tree(points, min_leaf_size=4)
    validate_tree(tree)
    assert tree.stats.forced_leaves > 0

    report = verify_against_baseline(tree, k=25, random_queries=50, high=10.0, seed=1)
    assert report.ok, report.mismatches[:3]


def test_borrowed_float32_points_match_exhaustive_search():
    rng = default_rng(5)
    points = uniform_points(rng, 700, 6).astype(np.float32)
    tree = build_tree(points)
    assert tree.points.dtype == np.float32
    assert not tree.owns_points

    report = verify_against_baseline(tree, k=10, random_queries=50, seed=3)
    assert report.ok, report.mismatches[:3]
