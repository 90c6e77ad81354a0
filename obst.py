"""
Optimal binary search tree construction.

Given sorted keys, their values, the probability of searching for each key
and the n+1 probabilities of a search landing in each gap between (or
outside) the keys, build the tree with the least expected search cost.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from obst_map import EMPTY, Internal, Node, OBSTMap

logger = logging.getLogger(__name__)

PROB_EPSILON = 0.0001 # allowed distance of the probability total from 1


class BadOBSTInputError(ValueError):
    """Lengths of the inputs disagree, or the probabilities do not total 1."""


def check_lengths(keys: Sequence, values: Sequence, key_probs: Sequence[float],
                  miss_probs: Sequence[float]) -> None:
    n = len(keys)
    if len(values) != n or len(key_probs) != n or len(miss_probs) != n + 1:
        msg = (f"{n} keys, {len(values)} values, {len(key_probs)} key probs, "
               f"and {len(miss_probs)} miss probs")
        logger.warning("Rejected optimal BST input: %s", msg)
        raise BadOBSTInputError(msg)


def check_probs(key_probs: Sequence[float], miss_probs: Sequence[float]) -> None:
    # Smallest first, to keep round-off down
    total = 0.0
    for p in sorted(list(key_probs) + list(miss_probs)):
        total += p
    if not abs(1.0 - total) <= PROB_EPSILON: # NaN fails too
        logger.warning("Rejected optimal BST input: probabilities total to %r", total)
        raise BadOBSTInputError(f"Probabilities total to {total}")


@dataclass
class OBSTData:
    """Raw input for one optimal BST: keys sorted ascending, values paired by position."""
    keys: List[Any]
    values: List[Any]
    key_probs: List[float]
    miss_probs: List[float]

    @classmethod
    def from_frequencies(cls, keys: Sequence, values: Sequence, key_counts: Sequence[float],
                         miss_counts: Optional[Sequence[float]] = None) -> "OBSTData":
        """
        Normalize raw search counts into probabilities.
        miss_counts defaults to all zeros (every search hits a key).
        """
        if miss_counts is None:
            miss_counts = [0] * (len(keys) + 1)
        total = sum(key_counts) + sum(miss_counts)
        if total <= 0:
            raise BadOBSTInputError("Frequencies total to 0")
        return cls(
            keys=list(keys),
            values=list(values),
            key_probs=[c / total for c in key_counts],
            miss_probs=[c / total for c in miss_counts],
        )


def build_obst_from_data(data: OBSTData) -> OBSTMap:
    return build_obst(data.keys, data.values, data.key_probs, data.miss_probs)


def build_obst(keys: Sequence, values: Sequence, key_probs: Sequence[float],
               miss_probs: Sequence[float]) -> OBSTMap:
    """
    Build the BST over keys with minimum expected search cost.

    A key at depth d costs d comparisons; a search that misses and falls
    off below a node at depth d costs d+1. Ties between equally cheap
    roots go to the smallest key index.
    """
    check_lengths(keys, values, key_probs, miss_probs)
    check_probs(key_probs, miss_probs)

    n = len(keys)
    logger.debug("Building optimal BST over %d keys", n)
    if n == 0:
        return OBSTMap(EMPTY, cost=miss_probs[0])

    # DP tables over key ranges [i, j]
    T = [[0.0] * n for _ in range(n)] # total probability of the range, gaps included
    C = [[0.0] * n for _ in range(n)] # least weighted depth for a tree over the range
    root: List[List[Node]] = [[EMPTY] * n for _ in range(n)] # subtree achieving C[i][j]

    for i in range(n):
        T[i][i] = miss_probs[i] + key_probs[i] + miss_probs[i+1]
        C[i][i] = 2*miss_probs[i] + key_probs[i] + 2*miss_probs[i+1]
        root[i][i] = Internal(EMPTY, keys[i], values[i], EMPTY)

    for l in range(1, n): # j - i
        for i in range(n - l):
            j = i + l
            # same total for every shape over the range
            T[i][j] = miss_probs[i] + key_probs[i] + T[i+1][j]

            # r = i: no left subtree
            best_cost = miss_probs[i] + T[i][j] + C[i+1][j]
            best = Internal(EMPTY, keys[i], values[i], root[i+1][j])

            for r in range(i + 1, j):
                cost = C[i][r-1] + T[i][j] + C[r+1][j]
                if cost < best_cost:
                    best_cost = cost
                    best = Internal(root[i][r-1], keys[r], values[r], root[r+1][j])

            # r = j: no right subtree
            cost = T[i][j] + C[i][j-1] + miss_probs[j+1]
            if cost < best_cost:
                best_cost = cost
                best = Internal(root[i][j-1], keys[j], values[j], EMPTY)

            C[i][j] = best_cost
            root[i][j] = best

    logger.debug("Optimal BST over %d keys has expected cost %.6f", n, C[0][n-1])
    return OBSTMap(root[0][n-1], cost=C[0][n-1])


def expected_cost(root: Node, key_probs: Sequence[float], miss_probs: Sequence[float]) -> float:
    """
    Weighted path length of any tree over the keys the probabilities describe.

    In-order position identifies each node's key index and each Empty's gap
    index, so the tree need not come from build_obst.
    """
    total = 0.0
    key_index = 0
    gap_index = 0
    stack = [(root, 1, False)] # (node, depth, children already pushed)
    while stack:
        node, depth, expanded = stack.pop()
        if not isinstance(node, Internal):
            total += depth * miss_probs[gap_index]
            gap_index += 1
        elif expanded:
            total += depth * key_probs[key_index]
            key_index += 1
        else:
            stack.append((node.right, depth + 1, False))
            stack.append((node, depth, True))
            stack.append((node.left, depth + 1, False))
    return total
