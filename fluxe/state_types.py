"""Core protocol types: supply counters, state roots, block headers and errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from fluxe.amount import Amount
from fluxe.field import field_hash, to_field


class FluxeError(Exception):
    """Base protocol error; raised directly for miscellaneous failures."""

    prefix = "Other error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}")


class InvalidProofError(FluxeError):
    prefix = "Invalid proof"


class ComplianceViolationError(FluxeError):
    prefix = "Compliance violation"


class SerializationError(FluxeError):
    prefix = "Serialization error"


class DoubleSpendError(FluxeError):
    """A nullifier was already spent."""

    def __init__(self, nullifier: int) -> None:
        self.nullifier = nullifier
        self.detail = str(nullifier)
        Exception.__init__(
            self, f"Double spend detected: nullifier {nullifier} already exists"
        )


class InsufficientBalanceError(FluxeError):
    def __init__(self, detail: str = "Insufficient balance") -> None:
        self.detail = detail
        Exception.__init__(self, detail)


class InvalidMerklePathError(FluxeError):
    def __init__(self, detail: str = "Invalid merkle path") -> None:
        self.detail = detail
        Exception.__init__(self, detail)


@dataclass
class Supply:
    """Minted and burned totals for one asset."""

    minted_total: Amount = field(default_factory=Amount.zero)
    burned_total: Amount = field(default_factory=Amount.zero)

    def current_supply(self) -> Amount:
        return self.minted_total.saturating_sub(self.burned_total)

    def mint(self, amount: Amount) -> None:
        self.minted_total = self.minted_total.saturating_add(amount)

    def burn(self, amount: Amount) -> None:
        if self.current_supply().checked_sub(amount) is None:
            raise InsufficientBalanceError("Insufficient supply to burn")
        self.burned_total = self.burned_total.saturating_add(amount)


@dataclass(frozen=True)
class StateRoots:
    """All Merkle roots that make up the protocol state."""

    cmt_root: int = 0
    nft_root: int = 0
    obj_root: int = 0
    cb_root: int = 0
    ingress_root: int = 0
    exit_root: int = 0
    sanctions_root: int = 0
    pool_rules_root: int = 0

    def __post_init__(self) -> None:
        for name in (
            "cmt_root",
            "nft_root",
            "obj_root",
            "cb_root",
            "ingress_root",
            "exit_root",
            "sanctions_root",
            "pool_rules_root",
        ):
            object.__setattr__(self, name, to_field(getattr(self, name)))

    def hash(self) -> int:
        """Hash of all roots in their fixed order."""
        return field_hash(
            [
                self.cmt_root,
                self.nft_root,
                self.obj_root,
                self.cb_root,
                self.ingress_root,
                self.exit_root,
                self.sanctions_root,
                self.pool_rules_root,
            ]
        )


@dataclass(frozen=True)
class BlockHeader:
    """State commitment produced for a processed batch."""

    prev_roots: StateRoots
    new_roots: StateRoots
    batch_id: int
    agg_proof: bytes
    timestamp: int


class TransactionType(Enum):
    MINT = "mint"
    BURN = "burn"
    TRANSFER = "transfer"
    OBJECT_UPDATE = "object_update"