"""
Ed25519 keys for signing chain updates.

Signing is delegated to the ``cryptography`` package; this module only wraps
raw 32-byte keys and exposes the sign/verify capability used by update
signers.
"""

from __future__ import annotations
import hashlib
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey as CryptoEd25519PrivateKey,
    Ed25519PublicKey as CryptoEd25519PublicKey,
)

KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


class Ed25519Error(ValueError):
    """Invalid Ed25519 key or signature material."""
    pass


def _raw_bytes(hex_string: str, what: str) -> bytes:
    try:
        return bytes.fromhex(hex_string)
    except (TypeError, ValueError) as e:
        raise Ed25519Error(f"Invalid hex string for {what}: {e}")


class Ed25519PublicKey:
    """Ed25519 verification key."""

    def __init__(self, public_key_bytes: bytes):
        """
        Initialize from 32-byte public key.

        Raises:
            Ed25519Error: If key is invalid
        """
        if len(public_key_bytes) != KEY_LENGTH:
            raise Ed25519Error(f"Ed25519 public key must be {KEY_LENGTH} bytes, got {len(public_key_bytes)}")
        try:
            self._crypto_key = CryptoEd25519PublicKey.from_public_bytes(public_key_bytes)
        except ValueError as e:
            raise Ed25519Error(f"Invalid Ed25519 public key: {e}")
        self._key_bytes = bytes(public_key_bytes)

    @classmethod
    def from_hex(cls, hex_string: str) -> Ed25519PublicKey:
        return cls(_raw_bytes(hex_string, "public key"))

    def to_bytes(self) -> bytes:
        return self._key_bytes

    def to_hex(self) -> str:
        return self._key_bytes.hex()

    def verify(self, signature: bytes, message: bytes) -> bool:
        """
        Verify a signature against a message.

        Returns:
            True if signature is valid
        """
        if len(signature) != SIGNATURE_LENGTH:
            return False
        try:
            self._crypto_key.verify(signature, message)
        except InvalidSignature:
            return False
        return True

    def __eq__(self, other) -> bool:
        if not isinstance(other, Ed25519PublicKey):
            return False
        return self._key_bytes == other._key_bytes

    def __hash__(self) -> int:
        return hash(self._key_bytes)

    def __repr__(self) -> str:
        return f"Ed25519PublicKey.from_hex('{self.to_hex()}')"


class Ed25519PrivateKey:
    """Ed25519 signing key, held as its 32-byte seed."""

    def __init__(self, private_key_bytes: bytes):
        """
        Initialize from 32-byte private key seed.

        Raises:
            Ed25519Error: If key is invalid
        """
        if len(private_key_bytes) != KEY_LENGTH:
            raise Ed25519Error(f"Ed25519 private key must be {KEY_LENGTH} bytes, got {len(private_key_bytes)}")
        self._key_bytes = bytes(private_key_bytes)
        self._crypto_key = CryptoEd25519PrivateKey.from_private_bytes(self._key_bytes)
        self._public_key = Ed25519PublicKey(
            self._crypto_key.public_key().public_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PublicFormat.Raw
            )
        )

    @classmethod
    def generate(cls) -> Ed25519PrivateKey:
        crypto_key = CryptoEd25519PrivateKey.generate()
        return cls(crypto_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption()
        ))

    @classmethod
    def from_hex(cls, hex_string: str) -> Ed25519PrivateKey:
        return cls(_raw_bytes(hex_string, "private key"))

    @classmethod
    def from_seed(cls, seed: Union[str, bytes]) -> Ed25519PrivateKey:
        """
        Derive private key from an arbitrary seed using SHA-256.

        For deterministic test keys.
        """
        if isinstance(seed, str):
            seed = seed.encode("utf-8")
        return cls(hashlib.sha256(seed).digest())

    def to_bytes(self) -> bytes:
        return self._key_bytes

    def to_hex(self) -> str:
        return self._key_bytes.hex()

    def public_key(self) -> Ed25519PublicKey:
        return self._public_key

    def sign(self, message: bytes) -> bytes:
        """Sign a message, returning the 64-byte signature."""
        return self._crypto_key.sign(message)

    def __repr__(self) -> str:
        return f"Ed25519PrivateKey(public={self._public_key.to_hex()})"


class Ed25519KeyPair:
    """Ed25519 key pair containing both private and public keys."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self.private_key = private_key
        self.public_key = private_key.public_key()

    @classmethod
    def generate(cls) -> Ed25519KeyPair:
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: Union[str, bytes]) -> Ed25519KeyPair:
        return cls(Ed25519PrivateKey.from_seed(seed))

    @classmethod
    def from_hex(cls, sign_key: str, verify_key: str) -> Ed25519KeyPair:
        """
        Create key pair from hex-encoded signing and verification keys.

        Raises:
            Ed25519Error: If the verification key does not belong to the signing key
        """
        key_pair = cls(Ed25519PrivateKey.from_hex(sign_key))
        if key_pair.public_key != Ed25519PublicKey.from_hex(verify_key):
            raise Ed25519Error("Verification key does not match signing key")
        return key_pair

    def sign(self, message: bytes) -> bytes:
        return self.private_key.sign(message)

    def verify(self, message: bytes, signature: bytes) -> bool:
        return self.public_key.verify(signature, message)

    def public_key_bytes(self) -> bytes:
        return self.public_key.to_bytes()

    def __str__(self) -> str:
        return f"Ed25519KeyPair(public={self.public_key.to_hex()})"


__all__ = [
    "KEY_LENGTH",
    "SIGNATURE_LENGTH",
    "Ed25519Error",
    "Ed25519PublicKey",
    "Ed25519PrivateKey",
    "Ed25519KeyPair",
]
