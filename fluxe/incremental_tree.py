"""Append-only incremental Merkle tree.

Backs the commitment, object, ingress and exit registries.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from fluxe.field import to_field
from fluxe.merkle_path import AppendWitness, MerklePath
from fluxe.tree_params import TreeFullError, TreeParams


class IncrementalTree:
    """Merkle tree whose leaves are only ever appended at the next free index."""

    def __init__(self, height: int) -> None:
        self._params = TreeParams(height)
        self._num_leaves = 0
        self._nodes: dict[tuple[int, int], int] = {}
        self._root = self._params.empty_root()

    @property
    def params(self) -> TreeParams:
        return self._params

    @property
    def height(self) -> int:
        return self._params.height

    @property
    def num_leaves(self) -> int:
        return self._num_leaves

    @property
    def root(self) -> int:
        return self._root

    @property
    def nodes(self) -> dict[tuple[int, int], int]:
        """Read-only view of the stored nodes, keyed by ``(level, index)``."""
        return dict(self._nodes)

    def __len__(self) -> int:
        return self._num_leaves

    def _node(self, level: int, index: int) -> int:
        return self._nodes.get((level, index), self._params.empty_at_level(level))

    def _siblings(self, leaf_index: int) -> Iterator[int]:
        index = leaf_index
        for level in range(self._params.height):
            yield self._node(level, index ^ 1)
            index >>= 1

    def _insert(self, leaf: int) -> tuple[int, list[int]]:
        leaf_index = self._num_leaves
        if leaf_index >= self._params.max_leaves():
            raise TreeFullError("Tree is full")
        self._nodes[(0, leaf_index)] = leaf
        siblings = []
        index, current = leaf_index, leaf
        for level in range(self._params.height):
            sibling = self._node(level, index ^ 1)
            siblings.append(sibling)
            if index & 1 == 0:
                current = self._params.hash_pair(current, sibling)
            else:
                current = self._params.hash_pair(sibling, current)
            index >>= 1
            self._nodes[(level + 1, index)] = current
        self._root = current
        self._num_leaves += 1
        return leaf_index, siblings

    def append(self, leaf: int) -> MerklePath:
        """Append a leaf and return its membership path in the new tree."""
        leaf = to_field(leaf)
        leaf_index, siblings = self._insert(leaf)
        return MerklePath(leaf_index=leaf_index, siblings=siblings, leaf=leaf)

    def append_batch(self, leaves: Iterable[int]) -> list[MerklePath]:
        """Append several leaves; return their paths against the final root."""
        start = self._num_leaves
        for leaf in leaves:
            self._insert(to_field(leaf))
        return [self.get_path(i) for i in range(start, self._num_leaves)]

    def get_siblings_for_index(self, leaf_index: int) -> list[int]:
        """Sibling hashes from ``leaf_index`` to the root, empty where unset."""
        return list(self._siblings(leaf_index))

    def get_path(self, leaf_index: int) -> MerklePath | None:
        """Membership path of an existing leaf, or None if there is none."""
        if not 0 <= leaf_index < self._num_leaves:
            return None
        leaf = self._nodes.get((0, leaf_index))
        if leaf is None:
            return None
        return MerklePath(
            leaf_index=leaf_index, siblings=list(self._siblings(leaf_index)), leaf=leaf
        )

    def get_leaf(self, index: int) -> int | None:
        """Leaf stored at ``index``, or None."""
        return self._nodes.get((0, index))

    def get_proof(self, leaf: int) -> MerklePath | None:
        """Path of the first leaf equal to ``leaf``, or None."""
        leaf = to_field(leaf)
        for index in range(self._num_leaves):
            if self.get_leaf(index) == leaf:
                return self.get_path(index)
        return None

    def recompute_root(self) -> int:
        """Rebuild the inner nodes from the leaves and return the resulting root."""
        if self._num_leaves == 0:
            return self._params.empty_root()
        for level in range(self._params.height):
            empty = self._params.empty_at_level(level)
            parents = sorted({i >> 1 for (lvl, i) in self._nodes if lvl == level})
            for parent in parents:
                left = self._node(level, parent * 2)
                right = self._node(level, parent * 2 + 1)
                if left != empty or right != empty:
                    self._nodes[(level + 1, parent)] = self._params.hash_pair(left, right)
        return self._nodes.get((self._params.height, 0), self._params.empty_root())

    def generate_append_witness(self, leaf: int) -> AppendWitness:
        """Witness for appending ``leaf``, taken before the tree changes."""
        leaf_index = self._num_leaves
        return AppendWitness(
            leaf=to_field(leaf),
            leaf_index=leaf_index,
            pre_siblings=list(self._siblings(leaf_index)),
            height=self._params.height,
        )