"""
Immutable binary search tree produced by the optimal BST builder.

A node is either Internal (key, value and two subtrees) or Empty, which
marks a missing subtree and stands for a "miss" region of the key space.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Empty:
    """No subtree here. Every Empty equals every other Empty."""

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = Empty()


@dataclass(frozen=True)
class Internal:
    left: "Node"
    key: Any
    value: Any
    right: "Node"


Node = Union[Internal, Empty]


class OBSTMap:
    """Read-only map backed by a binary search tree."""

    def __init__(self, root: Node = EMPTY, cost: Optional[float] = None):
        self._root = root
        self.cost = cost # expected search cost the builder computed for this shape (None if unknown)

    @property
    def root(self) -> Node:
        return self._root

    def search(self, key) -> Tuple[Any, int]: # returns (value or None, comparisons made)
        comparisons = 0
        node = self._root
        while isinstance(node, Internal):
            comparisons += 1
            if key == node.key:
                return node.value, comparisons
            elif key < node.key:
                node = node.left
            else:
                node = node.right
        return None, comparisons

    def _find(self, key) -> Optional[Internal]:
        node = self._root
        while isinstance(node, Internal):
            if key == node.key:
                return node
            node = node.left if key < node.key else node.right
        return None

    def get(self, key, default=None):
        node = self._find(key)
        return default if node is None else node.value

    def __getitem__(self, key):
        node = self._find(key)
        if node is None:
            raise KeyError(key)
        return node.value

    def __contains__(self, key) -> bool:
        return self._find(key) is not None

    def depth_of(self, key) -> Optional[int]:
        """Depth of the node holding key (root is 1), or None if absent."""
        depth = 0
        node = self._root
        while isinstance(node, Internal):
            depth += 1
            if key == node.key:
                return depth
            node = node.left if key < node.key else node.right
        return None

    def items(self) -> Iterator[Tuple[Any, Any]]:
        # In-order walk with an explicit stack; each call starts a fresh walk
        stack: List[Internal] = []
        node = self._root
        while stack or isinstance(node, Internal):
            while isinstance(node, Internal):
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.key, node.value
            node = node.right

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        return self.items()

    def keys(self) -> List[Any]:
        return [k for k, _ in self.items()]

    def values(self) -> List[Any]:
        return [v for _, v in self.items()]

    def __len__(self) -> int:
        return sum(1 for _ in self.items())

    def height(self) -> int:
        best = 0
        stack: List[Tuple[Node, int]] = [(self._root, 0)]
        while stack:
            node, depth = stack.pop()
            if isinstance(node, Internal):
                stack.append((node.left, depth + 1))
                stack.append((node.right, depth + 1))
            else:
                best = max(best, depth)
        return best

    def _preorder_keys(self) -> Iterator[Any]:
        stack: List[Node] = [self._root]
        while stack:
            node = stack.pop()
            if isinstance(node, Internal):
                yield node.key
                stack.append(node.right)
                stack.append(node.left)

    def __eq__(self, other) -> bool:
        # Preorder keys fix the shape, in-order items fix the contents
        if not isinstance(other, OBSTMap):
            return NotImplemented
        return (list(self._preorder_keys()) == list(other._preorder_keys())
                and list(self.items()) == list(other.items()))

    def __hash__(self) -> int:
        return hash((tuple(self._preorder_keys()), tuple(self.items())))

    def __repr__(self) -> str:
        return f"OBSTMap(size={len(self)}, height={self.height()}, cost={self.cost!r})"
