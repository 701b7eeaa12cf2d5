"""
Cryptographic primitives for the ledger client.
"""

from .ed25519 import Ed25519Error, Ed25519KeyPair, Ed25519PrivateKey, Ed25519PublicKey

__all__ = [
    "Ed25519Error",
    "Ed25519KeyPair",
    "Ed25519PrivateKey",
    "Ed25519PublicKey",
]
