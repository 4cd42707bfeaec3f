"""Shared test utilities for schtree."""

from .datasets import (
    gaussian_points,
    integer_grid,
    uniform_points,
)

__all__ = ["gaussian_points", "integer_grid", "uniform_points"]
