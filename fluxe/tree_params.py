"""Merkle tree parameters (empty-subtree hashes) and tree errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from fluxe.field import field_hash, to_field

DEFAULT_HEIGHT = 31


class TreeErrorKind(Enum):
    """The ways a Merkle tree operation can fail."""

    LEAF_NOT_FOUND = "Leaf not found in tree"
    TREE_FULL = "Tree is full"
    INVALID_INDEX = "Invalid index"
    INVALID_DEPTH = "Invalid depth"
    DUPLICATE_ENTRY = "Duplicate entry"
    CORRUPTED = "Tree corruption detected"


class TreeError(Exception):
    """A Merkle tree operation failed."""

    def __init__(self, kind: TreeErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        super().__init__(detail if detail is not None else kind.value)


class TreeFullError(TreeError):
    """No free leaf position is left in the tree."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(TreeErrorKind.TREE_FULL, detail)


class DuplicateEntryError(TreeError):
    """The entry is already present in the tree."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(TreeErrorKind.DUPLICATE_ENTRY, detail)


@dataclass(frozen=True)
class TreeParams:
    """Height of a Merkle tree and the hash of an empty subtree at each level."""

    height: int = DEFAULT_HEIGHT
    empty_hashes: tuple[int, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.height, bool) or not isinstance(self.height, int) or self.height < 0:
            raise ValueError(f"invalid tree height: {self.height!r}")
        hashes = [0]
        for _ in range(self.height):
            previous = hashes[-1]
            hashes.append(field_hash([previous, previous]))
        object.__setattr__(self, "empty_hashes", tuple(hashes))

    def hash_pair(self, left: int, right: int) -> int:
        """Hash two child nodes into their parent."""
        return field_hash([to_field(left), to_field(right)])

    def empty_at_level(self, level: int) -> int:
        """Hash of an empty subtree whose root sits at ``level`` (0 is the leaf level)."""
        return self.empty_hashes[level]

    def empty_root(self) -> int:
        """Root of a tree with no leaves."""
        return self.empty_hashes[self.height]

    def max_leaves(self) -> int:
        """Number of leaf positions in the tree."""
        return 1 << self.height