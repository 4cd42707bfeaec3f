"""Tree construction: hyperplane splitting and leaf constraint refinement."""

from .build import (
    build_tree,
    choose_split,
    collect_leaves,
    leaf_size_threshold,
    refine_constraints,
    split_tree,
)

__all__ = [
    "build_tree",
    "choose_split",
    "collect_leaves",
    "leaf_size_threshold",
    "refine_constraints",
    "split_tree",
]
