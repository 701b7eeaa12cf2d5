"""
Fixed-size hash values.

Hash32 is the 32-byte value used for block hashes, transaction hashes and
module references. Its textual form is exactly 64 hex characters.
"""

from __future__ import annotations
from typing import Union

from .errors import DecodeError

HASH_LENGTH = 32


class Hash32:
    """
    32-byte hash.

    Immutable and hashable, so it can key the block maps returned by
    transaction status queries.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[bytes, bytearray]):
        """
        Initialize from exactly 32 bytes.

        Raises:
            DecodeError: If value is not 32 bytes
        """
        if not isinstance(value, (bytes, bytearray)):
            raise DecodeError(f"{type(self).__name__} must be bytes, got {type(value).__name__}")
        if len(value) != HASH_LENGTH:
            raise DecodeError(f"{type(self).__name__} must be {HASH_LENGTH} bytes, got {len(value)}")
        self._value = bytes(value)

    @classmethod
    def from_hex(cls, hex_string: str):
        """
        Parse from 64 hex characters of either case.

        Raises:
            DecodeError: If the string is not exactly 64 valid hex characters
        """
        if not isinstance(hex_string, str) or len(hex_string) != 2 * HASH_LENGTH:
            raise DecodeError(f"{cls.__name__} must be {2 * HASH_LENGTH} hex characters")
        try:
            return cls(bytes.fromhex(hex_string))
        except ValueError as e:
            raise DecodeError(f"Invalid hex in {cls.__name__}: {e}", cause=e)

    def to_bytes(self) -> bytes:
        return self._value

    def hex(self) -> str:
        return self._value.hex()

    def __bytes__(self) -> bytes:
        return self._value

    def __eq__(self, other) -> bool:
        if not isinstance(other, Hash32):
            return NotImplemented
        return type(self) is type(other) and self._value == other._value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))

    def __lt__(self, other: Hash32) -> bool:
        if not isinstance(other, Hash32):
            return NotImplemented
        return self._value < other._value

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"{type(self).__name__}.from_hex('{self.hex()}')"


class BlockHash(Hash32):
    """Hash of a block."""
    __slots__ = ()


class TransactionHash(Hash32):
    """Hash of a block item; doubles as its submission id."""
    __slots__ = ()


class ModuleRef(Hash32):
    """Reference to a deployed smart contract module."""
    __slots__ = ()


__all__ = ["HASH_LENGTH", "Hash32", "BlockHash", "TransactionHash", "ModuleRef"]
