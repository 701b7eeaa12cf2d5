"""
Key material for signing chain updates.
"""

from .update_keys import UpdateKeyFile, UpdateKeyPair, load_update_key, load_update_keys

__all__ = [
    "UpdateKeyFile",
    "UpdateKeyPair",
    "load_update_key",
    "load_update_keys",
]
