"""Field elements, amounts, Merkle trees and in-memory protocol state management."""

__version__ = "0.1.0"