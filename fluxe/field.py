"""Scalar field of the BLS12-381 curve: arithmetic, hashing and byte conversions.

Field elements are plain ``int`` values in ``range(MODULUS)`` throughout the
package; :class:`FieldElement` wraps one for arithmetic and hex encoding.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Iterable, TypeVar

MODULUS = 0x73EDA753299D7D483339D80809A1D80553BDA402FFFE5BFEFFFFFFFF00000001
FIELD_BYTES = 32
TRUNCATED_BYTES = 31
U64_MAX = (1 << 64) - 1

_HASH_PERSON = b"fluxe-field-hash"

T = TypeVar("T")


def to_field(value: int | FieldElement) -> int:
    """Reduce an integer (or unwrap a FieldElement) into the scalar field."""
    if isinstance(value, FieldElement):
        return value.value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"cannot convert {type(value).__name__} to a field element")
    return value % MODULUS


def field_hash(inputs: Iterable[int | FieldElement]) -> int:
    """Hash a sequence of field elements to a single field element."""
    elements = [to_field(v) for v in inputs]
    hasher = hashlib.blake2b(digest_size=64, person=_HASH_PERSON)
    hasher.update(len(elements).to_bytes(8, "little"))
    for element in elements:
        hasher.update(element.to_bytes(FIELD_BYTES, "little"))
    return int.from_bytes(hasher.digest(), "little") % MODULUS


def blake2b_hash(data: bytes) -> bytes:
    """Return the 32-byte BLAKE2b digest of ``data``."""
    return hashlib.blake2b(bytes(data), digest_size=32).digest()


def field_to_bytes(value: int | FieldElement) -> bytes:
    """Encode a field element as its low 31 little-endian bytes."""
    return to_field(value).to_bytes(FIELD_BYTES, "little")[:TRUNCATED_BYTES]


def bytes_to_field(data: bytes) -> int:
    """Decode up to the first 31 little-endian bytes of ``data`` as a field element."""
    return int.from_bytes(bytes(data[:TRUNCATED_BYTES]), "little")


def serialize_fields(values: Iterable[int | FieldElement]) -> bytes:
    """Serialize field elements as consecutive 32-byte little-endian words."""
    return b"".join(to_field(v).to_bytes(FIELD_BYTES, "little") for v in values)


def deserialize_fields(data: bytes, count: int) -> list[int]:
    """Read ``count`` field elements written by :func:`serialize_fields`."""
    if count < 0:
        raise ValueError("count must be non-negative")
    needed = count * FIELD_BYTES
    if len(data) < needed:
        raise ValueError("unexpected end of data while reading field elements")
    result = []
    for offset in range(0, needed, FIELD_BYTES):
        value = int.from_bytes(bytes(data[offset:offset + FIELD_BYTES]), "little")
        if value >= MODULUS:
            raise ValueError("invalid field element encoding")
        result.append(value)
    return result


def deterministic_field_from_seed(seed: str) -> int:
    """Derive a field element deterministically from a seed string."""
    return bytes_to_field(blake2b_hash(seed.encode("utf-8")))


def field_fits_u64(value: int | FieldElement) -> bool:
    """Tell whether the truncated encoding of ``value`` fits in 64 bits."""
    return not any(field_to_bytes(value)[8:])


def field_to_u64(value: int | FieldElement) -> int:
    """Convert a field element to a 64-bit unsigned integer."""
    if not field_fits_u64(value):
        raise ValueError("Field element too large for u64")
    return int.from_bytes(field_to_bytes(value)[:8], "little")


def field_range(start: int, end: int) -> list[int]:
    """Field elements for the integers ``start`` up to but excluding ``end``."""
    return [to_field(i) for i in range(start, end)]


def next_power_of_two(n: int) -> int:
    """Smallest power of two that is at least ``n`` (1 for 0)."""
    if n < 0:
        raise ValueError("n must be non-negative")
    if n == 0:
        return 1
    return 1 << (n - 1).bit_length()


def pad_to_power_of_two(items: Iterable[T], padding_value: T) -> list[T]:
    """Return ``items`` padded with ``padding_value`` to a power-of-two length."""
    padded = list(items)
    padded.extend([padding_value] * (next_power_of_two(len(padded)) - len(padded)))
    return padded


@dataclass(frozen=True)
class FieldElement:
    """A scalar field element with arithmetic and hex encoding."""

    value: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", to_field(self.value))

    @staticmethod
    def zero() -> FieldElement:
        return FieldElement(0)

    @staticmethod
    def one() -> FieldElement:
        return FieldElement(1)

    @staticmethod
    def from_u64(value: int) -> FieldElement:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
            raise ValueError(f"{value!r} is not a 64-bit unsigned integer")
        return FieldElement(value)

    @staticmethod
    def from_bytes_le(data: bytes) -> FieldElement:
        return FieldElement(bytes_to_field(data))

    def to_bytes_le(self) -> bytes:
        return self.value.to_bytes(FIELD_BYTES, "little")

    def to_hex(self) -> str:
        return self.to_bytes_le().hex()

    @staticmethod
    def from_hex(text: str) -> FieldElement:
        return FieldElement.from_bytes_le(bytes.fromhex(text))

    def __add__(self, other: FieldElement) -> FieldElement:
        if not isinstance(other, FieldElement):
            return NotImplemented
        return FieldElement(self.value + other.value)

    def __sub__(self, other: FieldElement) -> FieldElement:
        if not isinstance(other, FieldElement):
            return NotImplemented
        return FieldElement(self.value - other.value)

    def __mul__(self, other: FieldElement) -> FieldElement:
        if not isinstance(other, FieldElement):
            return NotImplemented
        return FieldElement(self.value * other.value)

    def __truediv__(self, other: FieldElement) -> FieldElement:
        if not isinstance(other, FieldElement):
            return NotImplemented
        if other.value == 0:
            raise ZeroDivisionError("division by zero in the scalar field")
        return FieldElement(self.value * pow(other.value, -1, MODULUS))

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)