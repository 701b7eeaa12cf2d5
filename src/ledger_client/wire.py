# Wire message definitions for the node's v2 query and submission API.
# Every field is optional: presence of required fields is checked by the
# decoders in ledger_client.types, never here.

from __future__ import annotations
from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class WireMessage(BaseModel):
    """Base wire message."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON-ready dict with absent fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)


class Empty(WireMessage):
    """Message without fields."""
    pass


class HexValue(WireMessage):
    """Byte string carried as hex (hashes, addresses, keys, signatures)."""
    value: Optional[str] = None


# =============================================================================
# Requests
# =============================================================================

class BlockHashInput(WireMessage):
    """Exactly one of the fields is set."""
    best: Optional[Empty] = None
    last_final: Optional[Empty] = None
    given: Optional[HexValue] = None


class AccountIdentifierInput(WireMessage):
    """Exactly one of the fields is set."""
    address: Optional[HexValue] = None
    cred_id: Optional[HexValue] = None
    account_index: Optional[int] = None


class AccountInfoRequest(WireMessage):
    block_hash: Optional[BlockHashInput] = None
    account_identifier: Optional[AccountIdentifierInput] = None


class AncestorsRequest(WireMessage):
    block_hash: Optional[BlockHashInput] = None
    amount: Optional[int] = None


# =============================================================================
# Query responses
# =============================================================================

class AccountInfo(WireMessage):
    address: Optional[HexValue] = None
    index: Optional[int] = None
    sequence_number: Optional[int] = None
    amount: Optional[int] = None
    threshold: Optional[int] = None


class FinalizedBlockInfo(WireMessage):
    hash: Optional[HexValue] = None
    height: Optional[int] = None


class ExchangeRate(WireMessage):
    numerator: Optional[int] = None
    denominator: Optional[int] = None


class AccessStructure(WireMessage):
    access_public_keys: Optional[List[int]] = None
    access_threshold: Optional[int] = None


class Authorizations(WireMessage):
    keys: Optional[List[HexValue]] = None
    emergency: Optional[AccessStructure] = None
    protocol: Optional[AccessStructure] = None
    micro_ccd_per_euro: Optional[AccessStructure] = None
    euro_per_energy: Optional[AccessStructure] = None
    foundation_account: Optional[AccessStructure] = None


class ChainParameters(WireMessage):
    euro_per_energy: Optional[ExchangeRate] = None
    micro_ccd_per_euro: Optional[ExchangeRate] = None
    foundation_account: Optional[HexValue] = None
    level2_keys: Optional[Authorizations] = None


class NextUpdateSequenceNumbers(WireMessage):
    emergency: Optional[int] = None
    protocol: Optional[int] = None
    micro_ccd_per_euro: Optional[int] = None
    euro_per_energy: Optional[int] = None
    foundation_account: Optional[int] = None


class BlockItemSummary(WireMessage):
    index: Optional[int] = None
    energy_cost: Optional[int] = None


class BlockItemSummaryInBlock(WireMessage):
    block_hash: Optional[HexValue] = None
    outcome: Optional[BlockItemSummary] = None


class CommittedStatus(WireMessage):
    outcomes: Optional[List[BlockItemSummaryInBlock]] = None


class FinalizedStatus(WireMessage):
    outcome: Optional[BlockItemSummaryInBlock] = None


class BlockItemStatus(WireMessage):
    """Exactly one of the fields is set."""
    received: Optional[Empty] = None
    committed: Optional[CommittedStatus] = None
    finalized: Optional[FinalizedStatus] = None


# =============================================================================
# Submission
# =============================================================================

class UpdateInstructionHeader(WireMessage):
    sequence_number: Optional[int] = None
    effective_time: Optional[int] = None
    timeout: Optional[int] = None
    payload_size: Optional[int] = None


class UpdatePayload(WireMessage):
    """Exactly one of the fields is set."""
    micro_ccd_per_euro_update: Optional[ExchangeRate] = None
    euro_per_energy_update: Optional[ExchangeRate] = None
    foundation_account_update: Optional[HexValue] = None


class SignatureMap(WireMessage):
    signatures: Optional[Dict[int, HexValue]] = None


class UpdateInstruction(WireMessage):
    header: Optional[UpdateInstructionHeader] = None
    payload: Optional[UpdatePayload] = None
    signatures: Optional[SignatureMap] = None


class SendBlockItemRequest(WireMessage):
    update_instruction: Optional[UpdateInstruction] = None
