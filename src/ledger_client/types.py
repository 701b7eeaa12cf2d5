"""
Domain types returned by the node client.

Each type that arrives over the wire has a ``from_wire`` constructor that
turns the all-optional wire message into the domain value, failing with a
DecodeError when a required field is absent or a value does not validate.
"""

from __future__ import annotations
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Tuple

from . import wire
from .runtime.codec import require_field, hex_to_bytes
from .runtime.errors import DecodeError, MissingFieldError
from .runtime.hashes import BlockHash

U64_MAX = 2**64 - 1

ACCOUNT_ADDRESS_LENGTH = 32
CREDENTIAL_ID_LENGTH = 48
UPDATE_PUBLIC_KEY_LENGTH = 32


def _u64(value: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= U64_MAX:
        raise DecodeError(f"Field {name} must be an unsigned 64-bit integer, got {value!r}", details={"field": name})
    return value


def block_hash_from_wire(msg: wire.HexValue, name: str = "block_hash") -> BlockHash:
    """Decode a wrapped block hash, requiring its value."""
    return BlockHash(hex_to_bytes(require_field(msg.value, f"{name}.value"), name, 32))


@dataclass(frozen=True)
class AccountAddress:
    """32-byte account address."""
    value: bytes

    def __post_init__(self):
        if len(self.value) != ACCOUNT_ADDRESS_LENGTH:
            raise DecodeError(f"Account address must be {ACCOUNT_ADDRESS_LENGTH} bytes, got {len(self.value)}")

    @classmethod
    def from_hex(cls, hex_string: str) -> AccountAddress:
        return cls(hex_to_bytes(hex_string, "address", ACCOUNT_ADDRESS_LENGTH))

    @classmethod
    def from_wire(cls, msg: wire.HexValue) -> AccountAddress:
        return cls.from_hex(require_field(msg.value, "address.value"))

    def to_wire(self) -> wire.HexValue:
        return wire.HexValue(value=self.value.hex())

    def __str__(self) -> str:
        return self.value.hex()


@dataclass(frozen=True)
class CredentialRegistrationID:
    """Credential registration id: a compressed curve point, treated as opaque bytes."""
    value: bytes

    def __post_init__(self):
        if len(self.value) != CREDENTIAL_ID_LENGTH:
            raise DecodeError(f"Credential registration id must be {CREDENTIAL_ID_LENGTH} bytes, got {len(self.value)}")

    @classmethod
    def from_hex(cls, hex_string: str) -> CredentialRegistrationID:
        return cls(hex_to_bytes(hex_string, "cred_id", CREDENTIAL_ID_LENGTH))

    def to_wire(self) -> wire.HexValue:
        return wire.HexValue(value=self.value.hex())

    def __str__(self) -> str:
        return self.value.hex()


@dataclass(frozen=True)
class AccountInfo:
    """State of an account as of some block."""
    address: AccountAddress
    index: int
    sequence_number: int
    amount: int
    threshold: int

    @classmethod
    def from_wire(cls, msg: wire.AccountInfo) -> AccountInfo:
        return cls(
            address=AccountAddress.from_wire(require_field(msg.address, "address")),
            index=_u64(require_field(msg.index, "index"), "index"),
            sequence_number=_u64(require_field(msg.sequence_number, "sequence_number"), "sequence_number"),
            amount=_u64(require_field(msg.amount, "amount"), "amount"),
            threshold=_u64(require_field(msg.threshold, "threshold"), "threshold"),
        )


@dataclass(frozen=True)
class ExchangeRate:
    """Positive rational number, numerator over denominator."""
    numerator: int
    denominator: int

    def __post_init__(self):
        for name in ("numerator", "denominator"):
            value = getattr(self, name)
            if _u64(value, name) == 0:
                raise DecodeError(f"Exchange rate {name} must be positive")

    @classmethod
    def from_wire(cls, msg: wire.ExchangeRate) -> ExchangeRate:
        return cls(
            numerator=require_field(msg.numerator, "numerator"),
            denominator=require_field(msg.denominator, "denominator"),
        )

    def to_wire(self) -> wire.ExchangeRate:
        return wire.ExchangeRate(numerator=self.numerator, denominator=self.denominator)

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


class UpdateType(str, Enum):
    """Categories of chain updates, each with its own keys and sequence numbers."""
    EMERGENCY = "emergency"
    PROTOCOL = "protocol"
    MICRO_CCD_PER_EURO = "micro_ccd_per_euro"
    EURO_PER_ENERGY = "euro_per_energy"
    FOUNDATION_ACCOUNT = "foundation_account"


@dataclass(frozen=True)
class UpdatePublicKey:
    """Ed25519 verification key authorized for chain updates."""
    value: bytes

    def __post_init__(self):
        if len(self.value) != UPDATE_PUBLIC_KEY_LENGTH:
            raise DecodeError(f"Update public key must be {UPDATE_PUBLIC_KEY_LENGTH} bytes, got {len(self.value)}")

    @classmethod
    def from_wire(cls, msg: wire.HexValue) -> UpdatePublicKey:
        return cls(hex_to_bytes(require_field(msg.value, "key.value"), "key", UPDATE_PUBLIC_KEY_LENGTH))

    def __str__(self) -> str:
        return self.value.hex()


@dataclass(frozen=True)
class AccessStructure:
    """Key indices allowed to sign one update category, and how many must sign."""
    authorized_keys: FrozenSet[int]
    threshold: int

    @classmethod
    def from_wire(cls, msg: wire.AccessStructure, name: str) -> AccessStructure:
        keys = require_field(msg.access_public_keys, f"{name}.access_public_keys")
        threshold = require_field(msg.access_threshold, f"{name}.access_threshold")
        if threshold < 1:
            raise DecodeError(f"Access structure {name} has threshold {threshold}")
        return cls(authorized_keys=frozenset(keys), threshold=threshold)


@dataclass(frozen=True)
class Authorizations:
    """
    Level 2 update keys.

    ``keys`` is indexed by key index; ``access`` maps each update category
    to the subset of indices that may sign it.
    """
    keys: Tuple[UpdatePublicKey, ...]
    access: Mapping[UpdateType, AccessStructure] = field(hash=False)

    @classmethod
    def from_wire(cls, msg: wire.Authorizations) -> Authorizations:
        keys = tuple(UpdatePublicKey.from_wire(k) for k in require_field(msg.keys, "level2_keys.keys"))
        access = {}
        for update_type in UpdateType:
            structure = require_field(getattr(msg, update_type.value), f"level2_keys.{update_type.value}")
            access[update_type] = AccessStructure.from_wire(structure, update_type.value)
            unknown = [i for i in access[update_type].authorized_keys if not 0 <= i < len(keys)]
            if unknown:
                raise DecodeError(f"Access structure {update_type.value} references unknown key indices {unknown}")
        return cls(keys=keys, access=access)

    def access_structure(self, update_type: UpdateType) -> AccessStructure:
        return self.access[update_type]

    @property
    def micro_ccd_per_euro(self) -> AccessStructure:
        return self.access[UpdateType.MICRO_CCD_PER_EURO]

    @property
    def euro_per_energy(self) -> AccessStructure:
        return self.access[UpdateType.EURO_PER_ENERGY]

    @property
    def foundation_account(self) -> AccessStructure:
        return self.access[UpdateType.FOUNDATION_ACCOUNT]


@dataclass(frozen=True)
class ChainParameters:
    """Chain parameters in effect at a block."""
    euro_per_energy: ExchangeRate
    micro_ccd_per_euro: ExchangeRate
    foundation_account: AccountAddress
    level2_keys: Authorizations

    @classmethod
    def from_wire(cls, msg: wire.ChainParameters) -> ChainParameters:
        return cls(
            euro_per_energy=ExchangeRate.from_wire(require_field(msg.euro_per_energy, "euro_per_energy")),
            micro_ccd_per_euro=ExchangeRate.from_wire(require_field(msg.micro_ccd_per_euro, "micro_ccd_per_euro")),
            foundation_account=AccountAddress.from_wire(require_field(msg.foundation_account, "foundation_account")),
            level2_keys=Authorizations.from_wire(require_field(msg.level2_keys, "level2_keys")),
        )

    def common_update_keys(self) -> Authorizations:
        return self.level2_keys


@dataclass(frozen=True)
class NextUpdateSequenceNumbers:
    """Next sequence number to use for each update category."""
    numbers: Mapping[UpdateType, int] = field(hash=False)

    @classmethod
    def from_wire(cls, msg: wire.NextUpdateSequenceNumbers) -> NextUpdateSequenceNumbers:
        numbers = {}
        for update_type in UpdateType:
            value = require_field(getattr(msg, update_type.value), update_type.value)
            numbers[update_type] = _u64(value, update_type.value)
        return cls(numbers=numbers)

    def for_update_type(self, update_type: UpdateType) -> int:
        return self.numbers[update_type]

    @property
    def micro_ccd_per_euro(self) -> int:
        return self.numbers[UpdateType.MICRO_CCD_PER_EURO]

    @property
    def euro_per_energy(self) -> int:
        return self.numbers[UpdateType.EURO_PER_ENERGY]


@dataclass(frozen=True, order=True)
class TransactionTime:
    """Seconds since the Unix epoch."""
    seconds: int

    def __post_init__(self):
        _u64(self.seconds, "seconds")

    @classmethod
    def from_seconds(cls, seconds: int) -> TransactionTime:
        return cls(seconds)

    @classmethod
    def now(cls) -> TransactionTime:
        return cls(int(time.time()))

    @classmethod
    def expiry_in(cls, seconds: int) -> TransactionTime:
        """Wall-clock time ``seconds`` from now."""
        return cls(int(time.time()) + seconds)

    def __int__(self) -> int:
        return self.seconds


@dataclass(frozen=True)
class BlockItemSummary:
    """Outcome of a block item in one block."""
    index: int
    energy_cost: int

    @classmethod
    def from_wire(cls, msg: wire.BlockItemSummary) -> BlockItemSummary:
        return cls(
            index=_u64(require_field(msg.index, "outcome.index"), "outcome.index"),
            energy_cost=_u64(require_field(msg.energy_cost, "outcome.energy_cost"), "outcome.energy_cost"),
        )


def _outcome_from_wire(msg: wire.BlockItemSummaryInBlock) -> Tuple[BlockHash, BlockItemSummary]:
    block_hash = block_hash_from_wire(require_field(msg.block_hash, "block_hash"))
    return block_hash, BlockItemSummary.from_wire(require_field(msg.outcome, "outcome"))


class TransactionStatus:
    """
    Status of a submitted block item.

    One of Received, Committed or Finalized. A submission can be committed to
    several candidate blocks before exactly one of them is finalized.
    Finalized is terminal.
    """

    is_finalized = False

    @staticmethod
    def from_wire(msg: wire.BlockItemStatus) -> TransactionStatus:
        if msg.received is not None:
            return Received()
        if msg.committed is not None:
            # An item can be committed to no candidate block yet; absent means empty
            outcomes = msg.committed.outcomes or []
            return Committed(dict(_outcome_from_wire(o) for o in outcomes))
        if msg.finalized is not None:
            block_hash, summary = _outcome_from_wire(require_field(msg.finalized.outcome, "finalized.outcome"))
            return Finalized({block_hash: summary})
        raise MissingFieldError("status")


@dataclass(frozen=True)
class Received(TransactionStatus):
    """Received by the node, not yet in any block."""

    def __str__(self) -> str:
        return "received"


@dataclass(frozen=True)
class Committed(TransactionStatus):
    """Included in one or more candidate blocks, none finalized yet."""
    blocks: Dict[BlockHash, BlockItemSummary] = field(hash=False)

    def __str__(self) -> str:
        return f"committed to blocks {sorted(str(b) for b in self.blocks)}"


@dataclass(frozen=True)
class Finalized(TransactionStatus):
    """Included in a finalized block."""
    blocks: Dict[BlockHash, BlockItemSummary] = field(hash=False)

    is_finalized = True

    def __str__(self) -> str:
        return f"finalized in blocks {sorted(str(b) for b in self.blocks)}"


__all__ = [
    "AccountAddress",
    "CredentialRegistrationID",
    "AccountInfo",
    "ExchangeRate",
    "UpdateType",
    "UpdatePublicKey",
    "AccessStructure",
    "Authorizations",
    "ChainParameters",
    "NextUpdateSequenceNumbers",
    "TransactionTime",
    "BlockItemSummary",
    "TransactionStatus",
    "Received",
    "Committed",
    "Finalized",
    "block_hash_from_wire",
]
