import math

import numpy as np
import pytest

from schtree.core.geometry import (
    Constraint,
    Hyperplane,
    distance_to_region,
    hyperplane_distance,
    inside,
    inside_all,
    pack_constraints,
    point_distance,
    point_distances,
)


def _axis_plane(axis: int, offset: float, dimension: int = 2) -> Hyperplane:
    normal = np.zeros(dimension)
    normal[axis] = 1.0
    return Hyperplane(normal=normal, offset=offset)


def test_point_distance_is_euclidean():
    assert point_distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)
    np.testing.assert_allclose(
        point_distances(np.array([[0.0, 0.0], [1.0, 1.0]]), np.array([1.0, 1.0])),
        [math.sqrt(2.0), 0.0],
    )


def test_hyperplane_through_midpoint_has_unit_normal():
    hp = Hyperplane.through_midpoint(np.array([4.0, 0.0]), np.array([0.0, 0.0]))

    assert hp is not None
    np.testing.assert_allclose(hp.normal, [1.0, 0.0])
    assert hp.offset == pytest.approx(2.0)
    assert hyperplane_distance(np.array([5.0, 7.0]), hp) == pytest.approx(3.0)


def test_hyperplane_through_identical_points_is_none():
    assert Hyperplane.through_midpoint(np.ones(3), np.ones(3)) is None


def test_inside_respects_side_flag_and_boundary():
    hp = _axis_plane(0, 1.0)
    left = Constraint(hp, less_equal=True)
    right = left.complement()

    assert inside([0.5, 3.0], left)
    assert inside([1.0, 3.0], left)
    assert not inside([1.5, 3.0], left)
    assert inside([1.0, 3.0], right)
    assert inside([1.5, 3.0], right)
    np.testing.assert_array_equal(
        inside_all(np.array([[0.0, 0.0], [2.0, 0.0]]), left), [True, False]
    )


def test_distance_to_region_is_zero_inside():
    box = (
        Constraint(_axis_plane(0, 0.0), less_equal=False),
        Constraint(_axis_plane(0, 1.0), less_equal=True),
        Constraint(_axis_plane(1, 0.0), less_equal=False),
        Constraint(_axis_plane(1, 1.0), less_equal=True),
    )

    assert distance_to_region([0.5, 0.5], box) == 0.0
    assert distance_to_region([0.5, 3.0], box) == pytest.approx(2.0)
    # corner: the bound is the largest single violation, not the true 2-D distance
    assert distance_to_region([4.0, 2.0], box) == pytest.approx(3.0)
    assert distance_to_region([4.0, 2.0], []) == 0.0


def test_distance_to_region_accepts_nodes():
    class _Region:
        constraints = (Constraint(_axis_plane(0, 0.0), less_equal=True),)

    assert distance_to_region([2.0, 0.0], _Region()) == pytest.approx(2.0)


def test_with_offset_keeps_direction():
    ct = Constraint(_axis_plane(1, 2.0), less_equal=False)
    moved = ct.with_offset(5.0)

    assert moved.offset == 5.0
    assert moved.less_equal is False
    np.testing.assert_array_equal(moved.normal, ct.normal)
    assert ct.offset == 2.0


def test_pack_constraints_layout():
    cts = [
        Constraint(_axis_plane(0, 1.0, dimension=3), less_equal=True),
        Constraint(_axis_plane(2, -1.0, dimension=3), less_equal=False),
    ]
    normals, offsets, less_equal = pack_constraints(cts, 3)

    assert normals.shape == (2, 3)
    np.testing.assert_array_equal(offsets, [1.0, -1.0])
    np.testing.assert_array_equal(less_equal, [True, False])
    empty_normals, _, _ = pack_constraints([], 3)
    assert empty_normals.shape == (0, 3)
