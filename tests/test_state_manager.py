from dataclasses import dataclass, field

import pytest

from fluxe.amount import Amount
from fluxe.field import field_hash
from fluxe.state_manager import (
    InsufficientSupplyError,
    OperationKind,
    StateDoubleSpendError,
    StateError,
    StateManager,
    StateOperation,
    StateSortedLeaf,
    TransitionProof,
)
from fluxe.state_types import StateRoots


@dataclass
class Receipt:
    asset_type: int
    amount: Amount
    party_cm: int = 7
    nonce: int = 1
    aux: int = 0

    def hash(self) -> int:
        return field_hash([self.asset_type, int(self.amount), self.party_cm, self.nonce, self.aux])


@dataclass
class Invocation:
    ticket: int
    payload: list = field(default_factory=list)
    timestamp: int = 0

    def hash(self) -> int:
        return field_hash([self.ticket, len(self.payload), self.timestamp])


def test_state_manager_mint():
    manager = StateManager(32)
    receipt = Receipt(1, Amount(1000), party_cm=12345)
    proof = manager.process_mint(receipt, [111, 222])
    assert manager.get_supply(1) == Amount(1000)
    assert proof.old_roots != proof.new_roots
    assert manager.cmt_tree.num_leaves == 2
    assert manager.ingress_tree.num_leaves == 1
    assert proof.operations == [
        StateOperation(OperationKind.INGRESS_APPEND, receipt.hash()),
        StateOperation(OperationKind.CMT_APPEND, (111, 222)),
    ]


def test_state_manager_double_spend():
    manager = StateManager(32)
    nullifier = 987654321
    proof = manager.process_transfer([nullifier], [42])
    assert proof.verify() is True
    assert manager.nullifier_exists(nullifier)
    with pytest.raises(StateDoubleSpendError) as info:
        manager.process_transfer([nullifier], [43])
    assert info.value.nullifier == nullifier


def test_state_roots_hash():
    roots1 = StateRoots(1, 2, 3, 4, 5, 6, 7, 8)
    roots2 = StateRoots(1, 2, 3, 4, 5, 6, 7, 8)
    assert roots1.hash() == roots2.hash()
    roots3 = StateRoots(9, 2, 3, 4, 5, 6, 7, 8)
    assert roots1.hash() != roots3.hash()


def test_initial_roots_match_empty_trees():
    manager = StateManager(4)
    roots = manager.get_roots()
    assert roots.cmt_root == manager.params.empty_root()
    assert roots.sanctions_root == 0
    assert roots.pool_rules_root == 0
    assert manager.get_supply(99) == Amount.zero()


def test_burn_reduces_supply():
    manager = StateManager(8)
    manager.process_mint(Receipt(1, Amount(1000)), [5])
    proof = manager.process_burn(Receipt(1, Amount(300), nonce=2), 777)
    assert manager.get_supply(1) == Amount(700)
    assert manager.nullifier_exists(777)
    assert manager.exit_tree.num_leaves == 1
    assert proof.operations[0] == StateOperation(OperationKind.NFT_INSERT, 777)
    assert proof.operations[1].kind is OperationKind.EXIT_APPEND
    assert proof.old_roots.exit_root != proof.new_roots.exit_root


def test_burn_without_supply_fails():
    manager = StateManager(8)
    with pytest.raises(InsufficientSupplyError):
        manager.process_burn(Receipt(3, Amount(1)), 10)


def test_burn_over_supply_fails():
    manager = StateManager(8)
    manager.process_mint(Receipt(1, Amount(100)), [])
    with pytest.raises(InsufficientSupplyError):
        manager.process_burn(Receipt(1, Amount(101)), 10)
    assert manager.get_supply(1) == Amount(100)


def test_burn_double_spend():
    manager = StateManager(8)
    manager.process_mint(Receipt(1, Amount(100)), [])
    manager.process_burn(Receipt(1, Amount(10)), 55)
    with pytest.raises(StateDoubleSpendError):
        manager.process_burn(Receipt(1, Amount(10)), 55)
    assert manager.get_supply(1) == Amount(90)


def test_transfer_duplicate_in_inputs_raises_state_error():
    manager = StateManager(8)
    with pytest.raises(StateError):
        manager.process_transfer([5, 5], [1])


def test_object_update_with_callback():
    manager = StateManager(8)
    invocation = Invocation(ticket=4242, payload=[1, 2, 3], timestamp=1234567890)
    proof = manager.process_object_update(31337, invocation)
    assert manager.obj_tree.num_leaves == 1
    assert manager.cb_tree.contains(invocation.hash())
    assert [op.kind for op in proof.operations] == [
        OperationKind.OBJ_APPEND,
        OperationKind.CB_INSERT,
    ]
    assert proof.old_roots.cb_root != proof.new_roots.cb_root


def test_object_update_without_callback():
    manager = StateManager(8)
    proof = manager.process_object_update(31337)
    assert proof.operations == [StateOperation(OperationKind.OBJ_APPEND, 31337)]
    assert proof.old_roots.cb_root == proof.new_roots.cb_root


def test_commitment_proof():
    manager = StateManager(8)
    manager.process_mint(Receipt(1, Amount(10)), [11, 22])
    path = manager.get_commitment_proof(22)
    assert path.leaf_index == 1
    assert path.verify(manager.get_roots().cmt_root, manager.params)
    assert manager.get_commitment_proof(33) is None


def test_nullifier_non_membership_proof():
    manager = StateManager(8)
    manager.process_transfer([100, 300], [])
    proof = manager.get_nullifier_non_membership_proof(200)
    assert proof.low_leaf.key == 100
    assert proof.low_leaf.next_key == 300
    assert proof.low_leaf.next_index == 2
    assert proof.low_path.verify(manager.get_roots().nft_root, manager.params)
    assert manager.get_nullifier_non_membership_proof(300) is None


def test_admin_root_updates():
    manager = StateManager(4)
    manager.update_sanctions_root(17)
    manager.update_pool_rules_root(23)
    roots = manager.get_roots()
    assert roots.sanctions_root == 17
    assert roots.pool_rules_root == 23


def test_transition_proof_hash():
    a = StateRoots(1, 2, 3, 4, 5, 6, 7, 8)
    b = StateRoots(8, 7, 6, 5, 4, 3, 2, 1)
    one = TransitionProof(a, b, [StateOperation(OperationKind.OBJ_APPEND, 1)])
    same = TransitionProof(a, b, [StateOperation(OperationKind.OBJ_APPEND, 2)])
    two = TransitionProof(a, b, [])
    assert one.hash() == same.hash()
    assert one.hash() != two.hash()


def test_state_sorted_leaf_hash_depends_on_next_index():
    with_index = StateSortedLeaf(1, 2, 0)
    without_index = StateSortedLeaf(1, 2, None)
    assert with_index.hash() != without_index.hash()
    assert without_index.hash() == StateSortedLeaf(1, 2).hash()
    assert StateSortedLeaf(1, 2, 5).hash() == StateSortedLeaf(1, 2, 5).hash()