"""
Identifiers that pin queries to a block or an account, and the envelope in
which per-block query results are returned.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar, Union

from .. import wire
from ..runtime.codec import require_field
from ..runtime.errors import DecodeError
from ..runtime.hashes import BlockHash
from ..types import AccountAddress, CredentialRegistrationID, U64_MAX, block_hash_from_wire

A = TypeVar("A")


class BlockIdentifierKind(Enum):
    BEST = "best"
    LAST_FINAL = "last_final"
    GIVEN = "given"


@dataclass(frozen=True)
class BlockIdentifier:
    """
    A block identifier used in queries.

    Use the constructors:
        BlockIdentifier.best()        query the best block
        BlockIdentifier.last_final()  query the last finalized block at the time of the query
        BlockIdentifier.given(hash)   query a specific block
    """
    kind: BlockIdentifierKind
    block_hash: Optional[BlockHash] = None

    @classmethod
    def best(cls) -> BlockIdentifier:
        return cls(BlockIdentifierKind.BEST)

    @classmethod
    def last_final(cls) -> BlockIdentifier:
        return cls(BlockIdentifierKind.LAST_FINAL)

    @classmethod
    def given(cls, block_hash: BlockHash) -> BlockIdentifier:
        return cls(BlockIdentifierKind.GIVEN, block_hash)

    def to_wire(self) -> wire.BlockHashInput:
        if self.kind is BlockIdentifierKind.BEST:
            return wire.BlockHashInput(best=wire.Empty())
        if self.kind is BlockIdentifierKind.LAST_FINAL:
            return wire.BlockHashInput(last_final=wire.Empty())
        return wire.BlockHashInput(given=wire.HexValue(value=self.block_hash.hex()))

    def __str__(self) -> str:
        if self.kind is BlockIdentifierKind.GIVEN:
            return f"given({self.block_hash})"
        return self.kind.value


class AccountIdentifierKind(Enum):
    ADDRESS = "address"
    CRED_ID = "cred_id"
    INDEX = "account_index"


@dataclass(frozen=True)
class AccountIdentifier:
    """
    Identifies an account by its address, by one of its credential
    registration ids, or by its account index.
    """
    kind: AccountIdentifierKind
    value: Union[AccountAddress, CredentialRegistrationID, int]

    @classmethod
    def address(cls, address: AccountAddress) -> AccountIdentifier:
        return cls(AccountIdentifierKind.ADDRESS, address)

    @classmethod
    def cred_id(cls, cred_id: CredentialRegistrationID) -> AccountIdentifier:
        return cls(AccountIdentifierKind.CRED_ID, cred_id)

    @classmethod
    def index(cls, index: int) -> AccountIdentifier:
        if not 0 <= index <= U64_MAX:
            raise ValueError(f"Account index must be an unsigned 64-bit integer, got {index}")
        return cls(AccountIdentifierKind.INDEX, index)

    def to_wire(self) -> wire.AccountIdentifierInput:
        if self.kind is AccountIdentifierKind.ADDRESS:
            return wire.AccountIdentifierInput(address=self.value.to_wire())
        if self.kind is AccountIdentifierKind.CRED_ID:
            return wire.AccountIdentifierInput(cred_id=self.value.to_wire())
        return wire.AccountIdentifierInput(account_index=self.value)

    def __str__(self) -> str:
        return f"{self.kind.value}({self.value})"


def account_info_request(acc: AccountIdentifier, bi: BlockIdentifier) -> wire.AccountInfoRequest:
    return wire.AccountInfoRequest(block_hash=bi.to_wire(), account_identifier=acc.to_wire())


def ancestors_request(bi: BlockIdentifier, amount: int) -> wire.AncestorsRequest:
    return wire.AncestorsRequest(block_hash=bi.to_wire(), amount=amount)


@dataclass(frozen=True)
class QueryResponse(Generic[A]):
    """A query result together with the hash of the block it applies to."""
    block_hash: BlockHash
    response: A


@dataclass(frozen=True)
class FinalizedBlockInfo:
    """One entry of the finalized-blocks feed."""
    block_hash: BlockHash
    height: int

    @classmethod
    def from_wire(cls, msg: wire.FinalizedBlockInfo) -> FinalizedBlockInfo:
        block_hash = block_hash_from_wire(require_field(msg.hash, "hash"), "hash")
        height = require_field(msg.height, "height")
        if height < 0:
            raise DecodeError(f"Block height must be non-negative, got {height}")
        return cls(block_hash=block_hash, height=height)


__all__ = [
    "BlockIdentifierKind",
    "BlockIdentifier",
    "AccountIdentifierKind",
    "AccountIdentifier",
    "QueryResponse",
    "FinalizedBlockInfo",
    "account_info_request",
    "ancestors_request",
]
