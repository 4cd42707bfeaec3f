from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple, Union

import numpy as np

from schtree.core.geometry import Constraint, Hyperplane


@dataclass(frozen=True, eq=False)
class LeafNode:
    """Region holding point indices and its refined constraints."""

    indices: np.ndarray
    constraints: Tuple[Constraint, ...]
    forced: bool = False

    @property
    def size(self) -> int:
        return int(self.indices.shape[0])

    @property
    def is_leaf(self) -> bool:
        return True


@dataclass(frozen=True, eq=False)
class InternalNode:
    """Split node. Points with ``a·x <= b`` live under ``left``."""

    left: "Node"
    right: "Node"
    hyperplane: Hyperplane

    @property
    def is_leaf(self) -> bool:
        return False


Node = Union[LeafNode, InternalNode]


def iter_leaves(root: Node) -> Iterator[LeafNode]:
    """Yield leaves left to right."""

    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, LeafNode):
            yield node
        else:
            stack.append(node.right)
            stack.append(node.left)


def tree_depth(root: Node) -> int:
    depth = 0
    stack: List[Tuple[Node, int]] = [(root, 0)]
    while stack:
        node, level = stack.pop()
        depth = max(depth, level)
        if isinstance(node, InternalNode):
            stack.append((node.left, level + 1))
            stack.append((node.right, level + 1))
    return depth


__all__ = ["LeafNode", "InternalNode", "Node", "iter_leaves", "tree_depth"]
