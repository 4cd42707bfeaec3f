from __future__ import annotations

import itertools

import numpy as np
from numpy.random import Generator


def gaussian_points(rng: Generator, count: int, dimension: int, *, dtype=np.float64) -> np.ndarray:
    return rng.standard_normal(size=(count, dimension)).astype(dtype, copy=False)


def uniform_points(
    rng: Generator, count: int, dimension: int, *, low: float = 0.0, high: float = 100.0
) -> np.ndarray:
    return rng.uniform(low, high, size=(count, dimension))


def integer_grid(side: int, dimension: int) -> np.ndarray:
    """All points of ``{0, ..., side - 1}^dimension``; distances tie often."""

    axes = [range(side)] * dimension
    return np.asarray(list(itertools.product(*axes)), dtype=np.float64)
