"""
Ledger node client

Typed queries against a ledger node pinned to a block, construction and
signing of chain update transactions, and tracking of submissions until
finalization.
"""

# Runtime components
from .runtime.errors import *
from .runtime.hashes import Hash32, BlockHash, TransactionHash, ModuleRef

# Domain types
from .types import (
    AccountAddress, CredentialRegistrationID, AccountInfo, ExchangeRate,
    UpdateType, UpdatePublicKey, AccessStructure, Authorizations,
    ChainParameters, NextUpdateSequenceNumbers, TransactionTime,
    BlockItemSummary, TransactionStatus, Received, Committed, Finalized,
)

# Transport and query client
from .transport import Channel, ChannelConfig
from .v2 import (
    AccountIdentifier, BlockIdentifier, FinalizedBlockInfo, QueryResponse,
    Client, QueryStream, extract_metadata,
)

# Signing and transaction infrastructure
from .crypto import *
from .keys import *
from .signers import *
from .tx import *

__version__ = "0.1.0"
__all__ = [
    # Errors
    "ErrorCode", "LedgerClientError", "TransportError", "CallError",
    "DecodeError", "MissingFieldError", "InvalidKeysError", "KeyFileError",
    "SubmissionExpiredError",

    # Hashes
    "Hash32", "BlockHash", "TransactionHash", "ModuleRef",

    # Types
    "AccountAddress", "CredentialRegistrationID", "AccountInfo", "ExchangeRate",
    "UpdateType", "UpdatePublicKey", "AccessStructure", "Authorizations",
    "ChainParameters", "NextUpdateSequenceNumbers", "TransactionTime",
    "BlockItemSummary", "TransactionStatus", "Received", "Committed", "Finalized",

    # Client
    "Channel", "ChannelConfig",
    "AccountIdentifier", "BlockIdentifier", "FinalizedBlockInfo", "QueryResponse",
    "Client", "QueryStream", "extract_metadata",

    # Keys and signing
    "Ed25519KeyPair", "Ed25519PrivateKey", "Ed25519PublicKey",
    "UpdateKeyPair", "load_update_key", "load_update_keys",
    "UpdateSigner", "construct_update_signer",

    # Transactions
    "MicroCCDPerEuroUpdate", "EuroPerEnergyUpdate", "FoundationAccountUpdate",
    "UpdateHeader", "UpdateInstruction", "BlockItem", "update",
    "SubmissionTracker", "TrackerConfig",
]
