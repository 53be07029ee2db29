# fluxe

Core data structures for a privacy-preserving payments protocol: elements of
the BLS12-381 scalar field, 128-bit amounts, append-only and sorted Merkle
trees, and a state manager that keeps the commitment, nullifier, object,
callback, ingress and exit trees together with per-asset supply.

The package has no dependencies outside the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `fluxe.field` – field elements are plain `int` values below `MODULUS`.
  `FieldElement` wraps one with `+`, `-`, `*`, `/` (division by zero raises
  `ZeroDivisionError`) and 32-byte little-endian hex encoding (`to_hex`,
  `from_hex`). Helpers: `to_field`, `field_hash` (a BLAKE2b-based hash of a
  sequence of field elements into the field), `blake2b_hash` (32-byte digest),
  `field_to_bytes` / `bytes_to_field` (31-byte little-endian encoding),
  `serialize_fields` / `deserialize_fields`, `deterministic_field_from_seed`,
  `field_fits_u64`, `field_to_u64` (raises `ValueError` if the value is too
  large), `field_range`, `next_power_of_two` and `pad_to_power_of_two`.
- `fluxe.amount` – `Amount`, an unsigned 128-bit value. `saturating_add`,
  `saturating_sub` and `checked_sub` (returns `None` on underflow); `-`
  saturates at zero, while `+` and `*` raise `OverflowError` past 128 bits.
  `to_bytes` / `from_bytes` use 16 little-endian bytes.
- `fluxe.state_types` – `StateRoots` (eight roots and their `hash()`),
  `BlockHeader`, `Supply` (minted and burned totals; `burn` raises
  `InsufficientBalanceError` when it would go below zero), `TransactionType`,
  and the `FluxeError` family: `InvalidProofError`, `DoubleSpendError`,
  `InsufficientBalanceError`, `ComplianceViolationError`,
  `InvalidMerklePathError`, `SerializationError`.
- `fluxe.tree_params` – `TreeParams` (height, empty-subtree hashes,
  `hash_pair`, `empty_root`, `max_leaves`), `TreeErrorKind`, and the
  exceptions `TreeError`, `TreeFullError` and `DuplicateEntryError`.
- `fluxe.merkle_path` – `MerklePath` (`compute_root`, `verify`),
  `AppendWitness`, `SortedLeaf` (`contains_gap`, `hash`), `RangePath` and
  `SortedInsertWitness`.
- `fluxe.incremental_tree` – `IncrementalTree`, an append-only Merkle tree:
  `append`, `append_batch`, `get_path`, `get_leaf`, `get_proof`,
  `get_siblings_for_index`, `recompute_root` and `generate_append_witness`.
  Appending to a full tree raises `TreeFullError`.
- `fluxe.sorted_tree` – `SortedTree`, a sorted Merkle tree whose leaves link
  to the next larger key, with a sentinel key 0 at index 0: `insert`,
  `insert_with_witness`, `export_insert_witness` (leaves the tree unchanged),
  `prove_membership`, `prove_non_membership`, `get_path`, `contains` and
  `keys`. Inserting an existing key raises `DuplicateEntryError`.
- `fluxe.state_manager` – `StateManager` applies mints, burns, transfers and
  object updates and returns a `TransitionProof` (old and new roots plus the
  `StateOperation`s applied). Spending a nullifier twice raises
  `StateDoubleSpendError`; burning more than the outstanding supply raises
  `InsufficientSupplyError`. It also gives commitment membership proofs and
  nullifier `NonMembershipProof`s.

## Example

```python
from fluxe.incremental_tree import IncrementalTree
from fluxe.sorted_tree import SortedTree
from fluxe.field import FieldElement

tree = IncrementalTree(4)
path = tree.append(FieldElement.from_u64(7))
assert path.verify(tree.root, tree.params)

nullifiers = SortedTree(4)
nullifiers.insert(FieldElement.from_u64(100))
nullifiers.insert(FieldElement.from_u64(200))
proof = nullifiers.prove_non_membership(FieldElement.from_u64(150))
assert proof.verify(nullifiers.root, nullifiers.params)
```

## What it does not do

- There are no zero-knowledge circuits, proving or proof verification.
  `TransitionProof.verify` always returns `True`; it does not replay
  operations.
- There are no note, receipt or callback types. `StateManager.process_mint`,
  `process_burn` and `process_object_update` take any object that provides
  the attributes they read (`asset_type`, `amount`) and a `hash()` method.
- There is no batch processing, block production, storage, network service or
  command-line tool; state lives in memory only.
- `field_hash` is a BLAKE2b-based hash, not an algebraic hash meant for use
  inside circuits.