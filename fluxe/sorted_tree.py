"""Sorted Merkle tree with range proofs for non-membership.

Backs the nullifier, callback and sanctions registries. Leaves form a linked
list in key order: each leaf records the next larger key and where it lives.
"""

from __future__ import annotations

import bisect
from typing import Iterator, Mapping

from fluxe.field import to_field
from fluxe.merkle_path import MerklePath, RangePath, SortedInsertWitness, SortedLeaf
from fluxe.tree_params import (
    DuplicateEntryError,
    TreeError,
    TreeErrorKind,
    TreeFullError,
    TreeParams,
)


class SortedTree:
    """Merkle tree of sorted keys; key 0 is a sentinel stored at index 0."""

    def __init__(self, height: int) -> None:
        self._params = TreeParams(height)
        self._sorted_keys: list[int] = []
        self._key_index: dict[int, int] = {}
        self._leaves: dict[int, SortedLeaf] = {}
        self._nodes: dict[tuple[int, int], int] = {}
        self._next_index = 0
        self._root = self._params.empty_root()
        self._insert_leaf(SortedLeaf(0))

    @property
    def params(self) -> TreeParams:
        return self._params

    @property
    def height(self) -> int:
        return self._params.height

    @property
    def root(self) -> int:
        return self._root

    @property
    def next_index(self) -> int:
        """Index the next inserted leaf will occupy."""
        return self._next_index

    @property
    def num_leaves(self) -> int:
        return self._next_index

    def __len__(self) -> int:
        return self._next_index

    def __contains__(self, key: int) -> bool:
        return self.contains(key)

    # -- internals ---------------------------------------------------------

    def _sibling_iter(
        self, nodes: Mapping[tuple[int, int], int], leaf_index: int
    ) -> Iterator[int]:
        index = leaf_index
        for level in range(self._params.height):
            yield nodes.get((level, index ^ 1), self._params.empty_at_level(level))
            index >>= 1

    def _update_path(self, leaf_index: int, leaf_hash: int) -> MerklePath:
        """Store the leaf hash, rehash up to the root and return the leaf's path."""
        self._nodes[(0, leaf_index)] = leaf_hash
        siblings = []
        index, current = leaf_index, leaf_hash
        for level in range(self._params.height):
            sibling = self._nodes.get((level, index ^ 1), self._params.empty_at_level(level))
            siblings.append(sibling)
            if index & 1 == 0:
                current = self._params.hash_pair(current, sibling)
            else:
                current = self._params.hash_pair(sibling, current)
            index >>= 1
            self._nodes[(level + 1, index)] = current
        self._root = current
        return MerklePath(leaf_index=leaf_index, siblings=siblings, leaf=leaf_hash)

    def _check_capacity(self) -> None:
        if self._next_index >= self._params.max_leaves():
            raise TreeFullError("Tree is full")

    def _insert_leaf(self, leaf: SortedLeaf) -> MerklePath:
        self._check_capacity()
        index = self._next_index
        bisect.insort(self._sorted_keys, leaf.key)
        self._key_index[leaf.key] = index
        self._leaves[index] = leaf
        path = self._update_path(index, leaf.hash())
        self._next_index += 1
        return path

    def _find_predecessor(self, target: int) -> tuple[int, int]:
        """Largest key below ``target`` and its leaf index (the sentinel if none)."""
        position = bisect.bisect_left(self._sorted_keys, target)
        if position == 0:
            return 0, 0
        key = self._sorted_keys[position - 1]
        return key, self._key_index[key]

    def _predecessor_leaf(self, target: int) -> tuple[int, SortedLeaf]:
        _, pred_idx = self._find_predecessor(target)
        leaf = self._leaves.get(pred_idx)
        if leaf is None:
            raise TreeError(TreeErrorKind.LEAF_NOT_FOUND, "Predecessor leaf not found")
        return pred_idx, leaf

    def _plan_insert(self, key: int) -> tuple[int, SortedLeaf, SortedLeaf, SortedLeaf]:
        """Predecessor index, original predecessor, new leaf and updated predecessor."""
        pred_idx, pred_leaf = self._predecessor_leaf(key)
        new_leaf = SortedLeaf(key, pred_leaf.next_key, pred_leaf.next_index)
        updated_pred = SortedLeaf(pred_leaf.key, key, self._next_index)
        return pred_idx, pred_leaf, new_leaf, updated_pred

    def _require_path(self, leaf_index: int, message: str) -> MerklePath:
        path = self.get_path(leaf_index)
        if path is None:
            raise TreeError(TreeErrorKind.LEAF_NOT_FOUND, message)
        return path

    # -- public API --------------------------------------------------------

    def insert(self, key: int) -> MerklePath:
        """Insert a new key and return the new leaf's path in the updated tree."""
        key = to_field(key)
        if key in self._key_index:
            raise DuplicateEntryError("Key already exists")
        self._check_capacity()
        pred_idx, _, new_leaf, updated_pred = self._plan_insert(key)
        self._leaves[pred_idx] = updated_pred
        self._update_path(pred_idx, updated_pred.hash())
        return self._insert_leaf(new_leaf)

    def insert_with_witness(self, key: int) -> SortedInsertWitness:
        """Insert a new key and return the witness describing the insertion."""
        key = to_field(key)
        if key in self._key_index:
            raise DuplicateEntryError("Key already exists")
        range_proof = self.prove_non_membership(key)
        pred_idx, _, new_leaf, updated_pred = self._plan_insert(key)
        pred_path_before = self._require_path(pred_idx, "Could not get predecessor path")
        new_leaf_index = self._next_index
        self.insert(key)
        new_leaf_path = self._require_path(new_leaf_index, "Could not get path for new leaf")
        return SortedInsertWitness(
            target=key,
            range_proof=range_proof,
            new_leaf=new_leaf,
            updated_pred_leaf=updated_pred,
            new_leaf_path=new_leaf_path,
            pred_update_path=pred_path_before,
            height=self._params.height,
        )

    def prove_non_membership(self, target: int) -> RangePath:
        """Range proof that ``target`` is not a key of the tree."""
        target = to_field(target)
        if target in self._key_index:
            raise DuplicateEntryError("Key exists, cannot prove non-membership")
        pred_idx, pred_leaf = self._predecessor_leaf(target)
        low_leaf = SortedLeaf(pred_leaf.key, pred_leaf.next_key, pred_leaf.next_index)
        low_path = self._require_path(pred_idx, "Could not get path for predecessor")
        if not low_leaf.contains_gap(target):
            raise TreeError(TreeErrorKind.CORRUPTED, "Target not in gap")
        return RangePath(low_leaf=low_leaf, low_path=low_path, target=target)

    def prove_membership(self, key: int) -> MerklePath | None:
        """Path of the leaf holding ``key``, or None if the key is absent."""
        index = self._key_index.get(to_field(key))
        if index is None:
            return None
        return self.get_path(index)

    def get_path(self, leaf_index: int) -> MerklePath | None:
        """Path of the leaf at ``leaf_index``, or None if it is unset."""
        leaf_hash = self._nodes.get((0, leaf_index))
        if leaf_hash is None:
            return None
        return MerklePath(
            leaf_index=leaf_index,
            siblings=list(self._sibling_iter(self._nodes, leaf_index)),
            leaf=leaf_hash,
        )

    def contains(self, key: int) -> bool:
        return to_field(key) in self._key_index

    def export_insert_witness(self, key: int) -> SortedInsertWitness:
        """Witness for inserting ``key``, computed without changing the tree."""
        key = to_field(key)
        if key in self._key_index:
            raise DuplicateEntryError("Key already exists")
        range_proof = self.prove_non_membership(key)
        pred_idx, pred_leaf, new_leaf, updated_pred = self._plan_insert(key)

        pred_path = self._require_path(pred_idx, "Could not get path for predecessor")
        pred_update_path = MerklePath(
            leaf_index=pred_path.leaf_index,
            siblings=pred_path.siblings,
            leaf=pred_leaf.hash(),
        )

        # Nodes of the intermediate tree in which only the predecessor changed.
        nodes = dict(self._nodes)
        index, current = pred_idx, updated_pred.hash()
        for level in range(self._params.height):
            nodes[(level, index)] = current
            sibling = nodes.get((level, index ^ 1), self._params.empty_at_level(level))
            if index & 1 == 0:
                current = self._params.hash_pair(current, sibling)
            else:
                current = self._params.hash_pair(sibling, current)
            index >>= 1

        new_leaf_path = MerklePath(
            leaf_index=self._next_index,
            siblings=list(self._sibling_iter(nodes, self._next_index)),
            leaf=new_leaf.hash(),
        )
        return SortedInsertWitness(
            target=key,
            range_proof=range_proof,
            new_leaf=new_leaf,
            updated_pred_leaf=updated_pred,
            new_leaf_path=new_leaf_path,
            pred_update_path=pred_update_path,
            height=self._params.height,
        )

    def keys(self) -> list[int]:
        """All keys, sentinel included, in ascending order."""
        return list(self._sorted_keys)