"""Unsigned 128-bit token amounts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from fluxe.field import U64_MAX

U128_MAX = (1 << 128) - 1


@dataclass(frozen=True, order=True)
class Amount:
    """A non-negative amount that fits in 128 bits."""

    value: int = 0

    MAX: ClassVar[int] = U128_MAX

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("amount must be an integer")
        if not 0 <= self.value <= U128_MAX:
            raise ValueError(f"amount {self.value} is outside the 128-bit unsigned range")

    @staticmethod
    def zero() -> Amount:
        return Amount(0)

    def to_field(self) -> int:
        """Field element of the amount's low 64 bits."""
        return self.value & U64_MAX

    def saturating_add(self, other: Amount) -> Amount:
        return Amount(min(self.value + other.value, U128_MAX))

    def saturating_sub(self, other: Amount) -> Amount:
        return Amount(max(self.value - other.value, 0))

    def checked_sub(self, other: Amount) -> Amount | None:
        if other.value > self.value:
            return None
        return Amount(self.value - other.value)

    def to_bytes(self) -> bytes:
        """Sixteen bytes: low 64 bits then high 64 bits, each little-endian."""
        return self.value.to_bytes(16, "little")

    @staticmethod
    def from_bytes(data: bytes) -> Amount:
        if len(data) < 16:
            raise ValueError("an amount needs 16 bytes")
        return Amount(int.from_bytes(bytes(data[:16]), "little"))

    def __add__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        total = self.value + other.value
        if total > U128_MAX:
            raise OverflowError("amount addition overflowed")
        return Amount(total)

    def __sub__(self, other: Amount) -> Amount:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.saturating_sub(other)

    def __mul__(self, scalar: int) -> Amount:
        if isinstance(scalar, bool) or not isinstance(scalar, int):
            return NotImplemented
        product = self.value * scalar
        if product > U128_MAX:
            raise OverflowError("amount multiplication overflowed")
        return Amount(product)

    def __floordiv__(self, scalar: int) -> Amount:
        if isinstance(scalar, bool) or not isinstance(scalar, int):
            return NotImplemented
        return Amount(self.value // scalar)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)