"""Merkle membership paths, sorted-tree leaves and insertion witnesses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from fluxe.field import field_hash, to_field
from fluxe.tree_params import TreeParams


def _fold_path(leaf: int, leaf_index: int, siblings: Iterable[int], params: TreeParams) -> int:
    """Hash a leaf up through its siblings to the root."""
    current = leaf
    index = leaf_index
    for sibling in siblings:
        if index & 1 == 0:
            current = params.hash_pair(current, sibling)
        else:
            current = params.hash_pair(sibling, current)
        index >>= 1
    return current


@dataclass
class MerklePath:
    """Membership proof: a leaf, its index and the sibling hashes up to the root."""

    leaf_index: int
    siblings: list[int] = field(default_factory=list)
    leaf: int = 0

    def __post_init__(self) -> None:
        if self.leaf_index < 0:
            raise ValueError("leaf index must be non-negative")
        self.siblings = [to_field(s) for s in self.siblings]
        self.leaf = to_field(self.leaf)

    def compute_root(self, params: TreeParams) -> int:
        """Root implied by this path."""
        return _fold_path(self.leaf, self.leaf_index, self.siblings, params)

    def verify(self, root: int, params: TreeParams) -> bool:
        """Tell whether this path leads to ``root``."""
        return self.compute_root(params) == to_field(root)


@dataclass
class AppendWitness:
    """Data needed to prove the append of a leaf to an append-only tree."""

    leaf: int
    leaf_index: int
    pre_siblings: list[int]
    height: int

    def compute_old_root(self, params: TreeParams) -> int:
        """Root before the leaf was appended."""
        if self.leaf_index == 0:
            return params.empty_root()
        return _fold_path(params.empty_at_level(0), self.leaf_index, self.pre_siblings, params)

    def compute_new_root(self, params: TreeParams) -> int:
        """Root after the leaf was appended."""
        return _fold_path(to_field(self.leaf), self.leaf_index, self.pre_siblings, params)


@dataclass
class SortedLeaf:
    """Leaf of a sorted tree: a key and a link to the next larger key."""

    key: int
    next_key: int = 0
    next_index: int = 0

    def __post_init__(self) -> None:
        self.key = to_field(self.key)
        self.next_key = to_field(self.next_key)

    def contains_gap(self, value: int) -> bool:
        """Tell whether ``value`` lies strictly between this key and the next one."""
        value = to_field(value)
        return value > self.key and (self.next_key == 0 or value < self.next_key)

    def hash(self) -> int:
        """Hash of this leaf as stored in the tree."""
        return field_hash([self.key, self.next_key, self.next_index])


@dataclass
class RangePath:
    """Non-membership proof: the low leaf whose gap holds the target."""

    low_leaf: SortedLeaf
    low_path: MerklePath
    target: int

    def verify(self, root: int, params: TreeParams) -> bool:
        """Check that the low leaf is in the tree and its gap holds the target."""
        if not self.low_path.verify(root, params):
            return False
        return self.low_leaf.contains_gap(self.target)


@dataclass
class SortedInsertWitness:
    """Data needed to prove the insert of a key into a sorted tree."""

    target: int
    range_proof: RangePath
    new_leaf: SortedLeaf
    updated_pred_leaf: SortedLeaf
    new_leaf_path: MerklePath
    pred_update_path: MerklePath
    height: int

    def compute_new_root(self, params: TreeParams) -> int:
        """Root after updating the predecessor, combined with the new leaf's hash."""
        intermediate_root = _fold_path(
            self.updated_pred_leaf.hash(),
            self.pred_update_path.leaf_index,
            self.pred_update_path.siblings,
            params,
        )
        return field_hash([intermediate_root, self.new_leaf.hash()])