"""Global protocol state: the six Merkle registries, reference roots and supply."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Protocol, Sequence, Union

from fluxe.amount import Amount
from fluxe.field import field_hash, to_field
from fluxe.incremental_tree import IncrementalTree
from fluxe.merkle_path import MerklePath
from fluxe.sorted_tree import SortedTree
from fluxe.state_types import StateRoots
from fluxe.tree_params import TreeError, TreeParams


class IngressReceiptLike(Protocol):
    asset_type: int
    amount: Amount

    def hash(self) -> int: ...


class ExitReceiptLike(Protocol):
    asset_type: int
    amount: Amount

    def hash(self) -> int: ...


class CallbackInvocationLike(Protocol):
    def hash(self) -> int: ...


class StateError(Exception):
    """A state transition was rejected; raised directly for tree failures."""


class StateDoubleSpendError(StateError):
    """The nullifier has already been spent."""

    def __init__(self, nullifier: int) -> None:
        self.nullifier = nullifier
        super().__init__(f"Double spend detected: nullifier {nullifier} already exists")


class InsufficientSupplyError(StateError):
    """A burn asked for more than the outstanding supply."""

    def __init__(self, detail: str = "Insufficient supply") -> None:
        super().__init__(detail)


class OperationKind(Enum):
    CMT_APPEND = "cmt_append"
    NFT_INSERT = "nft_insert"
    NFT_BATCH_INSERT = "nft_batch_insert"
    OBJ_APPEND = "obj_append"
    CB_INSERT = "cb_insert"
    INGRESS_APPEND = "ingress_append"
    EXIT_APPEND = "exit_append"


@dataclass(frozen=True)
class StateOperation:
    """One operation applied to the state; ``value`` is a field element or a tuple of them."""

    kind: OperationKind
    value: Union[int, tuple[int, ...]]


@dataclass
class TransitionProof:
    """Roots before and after a transition together with the operations applied."""

    old_roots: StateRoots
    new_roots: StateRoots
    operations: list[StateOperation] = field(default_factory=list)

    def verify(self) -> bool:
        """Accept the transition; replay checking is not performed."""
        return True

    def hash(self) -> int:
        """Hash binding both root sets and the number of operations."""
        return field_hash(
            [self.old_roots.hash(), self.new_roots.hash(), len(self.operations)]
        )


@dataclass
class StateSortedLeaf:
    """Sorted-tree leaf as exposed in non-membership proofs."""

    key: int
    next_key: int
    next_index: Optional[int] = None

    def hash(self) -> int:
        inputs = [self.key, self.next_key]
        if self.next_index is not None:
            inputs.append(self.next_index)
        return field_hash(inputs)


@dataclass
class NonMembershipProof:
    """Low leaf whose gap holds the nullifier, and its Merkle path."""

    low_leaf: StateSortedLeaf
    low_path: MerklePath


class StateManager:
    """Holds every registry of the protocol and applies transactions to them."""

    def __init__(self, tree_depth: int) -> None:
        self.params = TreeParams(tree_depth)
        self.cmt_tree = IncrementalTree(tree_depth)
        self.nft_tree = SortedTree(tree_depth)
        self.obj_tree = IncrementalTree(tree_depth)
        self.cb_tree = SortedTree(tree_depth)
        self.ingress_tree = IncrementalTree(tree_depth)
        self.exit_tree = IncrementalTree(tree_depth)
        self.sanctions_root = 0
        self.pool_rules_root = 0
        self.supply: dict[int, Amount] = {}

    def get_roots(self) -> StateRoots:
        return StateRoots(
            cmt_root=self.cmt_tree.root,
            nft_root=self.nft_tree.root,
            obj_root=self.obj_tree.root,
            cb_root=self.cb_tree.root,
            ingress_root=self.ingress_tree.root,
            exit_root=self.exit_tree.root,
            sanctions_root=self.sanctions_root,
            pool_rules_root=self.pool_rules_root,
        )

    @staticmethod
    def _sorted_insert(tree: SortedTree, key: int) -> None:
        try:
            tree.insert(key)
        except TreeError as exc:
            raise StateError(str(exc)) from exc

    def process_mint(
        self, ingress_receipt: IngressReceiptLike, output_commitments: Iterable[int]
    ) -> TransitionProof:
        """Record a deposit: append its receipt and output notes, raise supply."""
        commitments = tuple(to_field(cm) for cm in output_commitments)
        old_roots = self.get_roots()

        ingress_hash = to_field(ingress_receipt.hash())
        self.ingress_tree.append(ingress_hash)
        for cm in commitments:
            self.cmt_tree.append(cm)

        asset = ingress_receipt.asset_type
        self.supply[asset] = self.supply.get(asset, Amount.zero()) + ingress_receipt.amount

        return TransitionProof(
            old_roots=old_roots,
            new_roots=self.get_roots(),
            operations=[
                StateOperation(OperationKind.INGRESS_APPEND, ingress_hash),
                StateOperation(OperationKind.CMT_APPEND, commitments),
            ],
        )

    def process_burn(self, exit_receipt: ExitReceiptLike, nullifier: int) -> TransitionProof:
        """Record a withdrawal: spend the nullifier, append the exit receipt, lower supply."""
        nullifier = to_field(nullifier)
        old_roots = self.get_roots()

        if self.nft_tree.contains(nullifier):
            raise StateDoubleSpendError(nullifier)
        self._sorted_insert(self.nft_tree, nullifier)

        exit_hash = to_field(exit_receipt.hash())
        self.exit_tree.append(exit_hash)

        current = self.supply.get(exit_receipt.asset_type)
        if current is None or current < exit_receipt.amount:
            raise InsufficientSupplyError()
        self.supply[exit_receipt.asset_type] = current - exit_receipt.amount

        return TransitionProof(
            old_roots=old_roots,
            new_roots=self.get_roots(),
            operations=[
                StateOperation(OperationKind.NFT_INSERT, nullifier),
                StateOperation(OperationKind.EXIT_APPEND, exit_hash),
            ],
        )

    def process_transfer(
        self, input_nullifiers: Sequence[int], output_commitments: Iterable[int]
    ) -> TransitionProof:
        """Spend the input nullifiers and append the output commitments."""
        nullifiers = tuple(to_field(nf) for nf in input_nullifiers)
        commitments = tuple(to_field(cm) for cm in output_commitments)
        old_roots = self.get_roots()

        for nf in nullifiers:
            if self.nft_tree.contains(nf):
                raise StateDoubleSpendError(nf)
        for nf in nullifiers:
            self._sorted_insert(self.nft_tree, nf)
        for cm in commitments:
            self.cmt_tree.append(cm)

        return TransitionProof(
            old_roots=old_roots,
            new_roots=self.get_roots(),
            operations=[
                StateOperation(OperationKind.NFT_BATCH_INSERT, nullifiers),
                StateOperation(OperationKind.CMT_APPEND, commitments),
            ],
        )

    def process_object_update(
        self,
        new_object_commitment: int,
        callback_invocation: Optional[CallbackInvocationLike] = None,
    ) -> TransitionProof:
        """Append a new object commitment and, if given, register a callback."""
        commitment = to_field(new_object_commitment)
        old_roots = self.get_roots()

        self.obj_tree.append(commitment)
        operations = [StateOperation(OperationKind.OBJ_APPEND, commitment)]
        if callback_invocation is not None:
            cb_hash = to_field(callback_invocation.hash())
            self._sorted_insert(self.cb_tree, cb_hash)
            operations.append(StateOperation(OperationKind.CB_INSERT, cb_hash))

        return TransitionProof(
            old_roots=old_roots, new_roots=self.get_roots(), operations=operations
        )

    def get_commitment_proof(self, commitment: int) -> Optional[MerklePath]:
        return self.cmt_tree.get_proof(commitment)

    def get_nullifier_non_membership_proof(self, nullifier: int) -> Optional[NonMembershipProof]:
        try:
            range_path = self.nft_tree.prove_non_membership(nullifier)
        except TreeError:
            return None
        low = range_path.low_leaf
        return NonMembershipProof(
            low_leaf=StateSortedLeaf(low.key, low.next_key, low.next_index),
            low_path=range_path.low_path,
        )

    def nullifier_exists(self, nullifier: int) -> bool:
        return self.nft_tree.contains(nullifier)

    def get_supply(self, asset_type: int) -> Amount:
        return self.supply.get(asset_type, Amount.zero())

    def update_sanctions_root(self, new_root: int) -> None:
        self.sanctions_root = to_field(new_root)

    def update_pool_rules_root(self, new_root: int) -> None:
        self.pool_rules_root = to_field(new_root)