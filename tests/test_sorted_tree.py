import pytest

from fluxe.sorted_tree import SortedTree
from fluxe.tree_params import DuplicateEntryError, TreeErrorKind, TreeFullError


def test_new_tree_holds_only_sentinel():
    tree = SortedTree(4)
    assert tree.keys() == [0]
    assert tree.contains(0)
    assert tree.next_index == 1


def test_sorted_tree_insert():
    tree = SortedTree(4)
    key1, key2, key3 = 100, 200, 150

    path1 = tree.insert(key1)
    assert path1.verify(tree.root, tree.params)
    path2 = tree.insert(key2)
    assert path2.verify(tree.root, tree.params)
    path3 = tree.insert(key3)
    assert path3.verify(tree.root, tree.params)

    for key in (key1, key2, key3):
        assert tree.prove_membership(key).verify(tree.root, tree.params)

    keys = tree.keys()
    assert keys[1] == key1
    assert keys[2] == key3
    assert keys[3] == key2


def test_non_membership_proof():
    tree = SortedTree(4)
    tree.insert(100)
    tree.insert(200)
    tree.insert(300)

    proof = tree.prove_non_membership(150)
    assert proof.verify(tree.root, tree.params)
    assert proof.target == 150
    assert proof.low_leaf.key == 100
    assert proof.low_leaf.next_key == 200


def test_duplicate_insert():
    tree = SortedTree(4)
    tree.insert(100)
    with pytest.raises(DuplicateEntryError) as info:
        tree.insert(100)
    assert str(info.value) == "Key already exists"


def test_membership_proof():
    tree = SortedTree(4)
    tree.insert(100)
    proof = tree.prove_membership(100)
    assert proof.verify(tree.root, tree.params)
    assert tree.prove_membership(999) is None


def test_range_edge_cases():
    tree = SortedTree(4)
    tree.insert(100)
    tree.insert(1000)
    for target in (50, 500, 2000):
        assert tree.prove_non_membership(target).verify(tree.root, tree.params)


def test_non_membership_of_existing_key_fails():
    tree = SortedTree(4)
    tree.insert(42)
    with pytest.raises(DuplicateEntryError):
        tree.prove_non_membership(42)
    with pytest.raises(DuplicateEntryError):
        tree.prove_non_membership(0)


def test_tree_full_leaves_root_untouched():
    tree = SortedTree(2)
    for key in (10, 20, 30):
        tree.insert(key)
    root = tree.root
    with pytest.raises(TreeFullError) as info:
        tree.insert(40)
    assert info.value.kind is TreeErrorKind.TREE_FULL
    assert tree.root == root
    assert not tree.contains(40)


def test_export_insert_witness_does_not_change_tree():
    tree = SortedTree(4)
    tree.insert(100)
    root = tree.root
    keys = tree.keys()
    witness = tree.export_insert_witness(150)
    assert tree.root == root
    assert tree.keys() == keys
    assert witness.range_proof.verify(root, tree.params)
    assert witness.pred_update_path.verify(root, tree.params)
    assert witness.new_leaf_path.leaf_index == tree.next_index


def test_export_insert_witness_predicts_insertion():
    tree = SortedTree(4)
    tree.insert(100)
    tree.insert(300)
    witness = tree.export_insert_witness(200)
    assert witness.new_leaf.key == 200
    assert witness.new_leaf.next_key == 300
    assert witness.updated_pred_leaf.key == 100
    assert witness.updated_pred_leaf.next_key == 200

    tree.insert(200)
    actual = tree.get_path(witness.new_leaf_path.leaf_index)
    assert actual.siblings == witness.new_leaf_path.siblings
    assert witness.new_leaf_path.compute_root(tree.params) == tree.root


def test_export_insert_witness_rejects_existing_key():
    tree = SortedTree(4)
    tree.insert(7)
    with pytest.raises(DuplicateEntryError):
        tree.export_insert_witness(7)


def test_insert_with_witness():
    tree = SortedTree(4)
    tree.insert(100)
    old_root = tree.root
    witness = tree.insert_with_witness(50)
    assert tree.contains(50)
    assert witness.target == 50
    assert witness.range_proof.verify(old_root, tree.params)
    assert witness.pred_update_path.verify(old_root, tree.params)
    assert witness.new_leaf_path.verify(tree.root, tree.params)
    assert witness.updated_pred_leaf.key == 0
    assert witness.updated_pred_leaf.next_key == 50
    assert witness.new_leaf.next_key == 100


def test_insert_with_witness_duplicate():
    tree = SortedTree(4)
    tree.insert(5)
    with pytest.raises(DuplicateEntryError):
        tree.insert_with_witness(5)


def test_same_inserts_give_same_root():
    first, second = SortedTree(4), SortedTree(4)
    for key in (3, 9, 6):
        first.insert(key)
        second.insert(key)
    assert first.root == second.root


def test_get_path_unset_index():
    tree = SortedTree(4)
    assert tree.get_path(5) is None
    assert tree.get_path(0).verify(tree.root, tree.params)