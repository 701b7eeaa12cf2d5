"""
Runtime support for the ledger client: errors, hashes and codec helpers.
"""

from .errors import *
from .hashes import HASH_LENGTH, Hash32, BlockHash, TransactionHash, ModuleRef
from .codec import require_field, decode_message, dumps_canonical, canonical_bytes, sha256_bytes
