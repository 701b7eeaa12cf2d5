"""
Client for the node's v2 API.
"""

from .identifiers import (
    AccountIdentifier,
    AccountIdentifierKind,
    BlockIdentifier,
    BlockIdentifierKind,
    FinalizedBlockInfo,
    QueryResponse,
)
from .client import BLOCK_HASH_HEADER, Client, QueryStream, extract_metadata

__all__ = [
    "AccountIdentifier",
    "AccountIdentifierKind",
    "BlockIdentifier",
    "BlockIdentifierKind",
    "FinalizedBlockInfo",
    "QueryResponse",
    "BLOCK_HASH_HEADER",
    "Client",
    "QueryStream",
    "extract_metadata",
]
