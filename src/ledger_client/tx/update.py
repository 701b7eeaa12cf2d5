"""
Chain update transactions.

An update instruction is a header (sequence number, effective time, timeout,
payload size), a payload changing one chain parameter, and the signatures of
the update keys authorized for the payload's category. The signed digest is
SHA-256 over the canonical JSON encoding of header and payload.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar, Mapping

from .. import wire
from ..runtime.codec import canonical_bytes, sha256_bytes
from ..runtime.hashes import TransactionHash
from ..signers.update_signer import UpdateSigner
from ..types import AccountAddress, ExchangeRate, TransactionTime, UpdateType

# Effective time meaning "as soon as the update is finalized"
EFFECTIVE_IMMEDIATELY = TransactionTime(0)


class UpdatePayload(ABC):
    """Payload of a chain update; each variant belongs to one update category."""

    update_type: ClassVar[UpdateType]

    @abstractmethod
    def to_wire(self) -> wire.UpdatePayload:
        pass

    def encode(self) -> bytes:
        return canonical_bytes(self.to_wire().to_json_dict())


@dataclass(frozen=True)
class MicroCCDPerEuroUpdate(UpdatePayload):
    """Set the micro-CCD per euro exchange rate."""
    rate: ExchangeRate

    update_type: ClassVar[UpdateType] = UpdateType.MICRO_CCD_PER_EURO

    def to_wire(self) -> wire.UpdatePayload:
        return wire.UpdatePayload(micro_ccd_per_euro_update=self.rate.to_wire())


@dataclass(frozen=True)
class EuroPerEnergyUpdate(UpdatePayload):
    """Set the euro per energy exchange rate."""
    rate: ExchangeRate

    update_type: ClassVar[UpdateType] = UpdateType.EURO_PER_ENERGY

    def to_wire(self) -> wire.UpdatePayload:
        return wire.UpdatePayload(euro_per_energy_update=self.rate.to_wire())


@dataclass(frozen=True)
class FoundationAccountUpdate(UpdatePayload):
    """Change the foundation account."""
    address: AccountAddress

    update_type: ClassVar[UpdateType] = UpdateType.FOUNDATION_ACCOUNT

    def to_wire(self) -> wire.UpdatePayload:
        return wire.UpdatePayload(foundation_account_update=self.address.to_wire())


@dataclass(frozen=True)
class UpdateHeader:
    sequence_number: int
    effective_time: TransactionTime
    timeout: TransactionTime
    payload_size: int

    def to_wire(self) -> wire.UpdateInstructionHeader:
        return wire.UpdateInstructionHeader(
            sequence_number=self.sequence_number,
            effective_time=self.effective_time.seconds,
            timeout=self.timeout.seconds,
            payload_size=self.payload_size,
        )


def update_signing_digest(header: UpdateHeader, payload: UpdatePayload) -> bytes:
    """Digest that update keys sign: SHA-256 of the canonical header and payload."""
    return sha256_bytes(canonical_bytes({
        "header": header.to_wire().to_json_dict(),
        "payload": payload.to_wire().to_json_dict(),
    }))


@dataclass(frozen=True)
class UpdateInstruction:
    """A signed chain update."""
    header: UpdateHeader
    payload: UpdatePayload
    signatures: Mapping[int, bytes] = field(hash=False)

    def signing_digest(self) -> bytes:
        return update_signing_digest(self.header, self.payload)

    def to_wire(self) -> wire.UpdateInstruction:
        return wire.UpdateInstruction(
            header=self.header.to_wire(),
            payload=self.payload.to_wire(),
            signatures=wire.SignatureMap(signatures={
                index: wire.HexValue(value=sig.hex()) for index, sig in sorted(self.signatures.items())
            }),
        )


@dataclass(frozen=True)
class BlockItem:
    """A submittable block item wrapping one update instruction."""
    instruction: UpdateInstruction

    def to_wire(self) -> wire.SendBlockItemRequest:
        return wire.SendBlockItemRequest(update_instruction=self.instruction.to_wire())

    def hash(self) -> TransactionHash:
        """Hash identifying this item once submitted."""
        return TransactionHash(sha256_bytes(canonical_bytes(self.to_wire().to_json_dict())))


def update(
    signer: UpdateSigner,
    sequence_number: int,
    effective_time: TransactionTime,
    timeout: TransactionTime,
    payload: UpdatePayload,
) -> UpdateInstruction:
    """
    Build and sign an update instruction.

    Args:
        signer: Signer for the payload's update category
        sequence_number: Next sequence number of the category
        effective_time: When the update takes effect; 0 means on finalization
        timeout: Time after which the node must reject the instruction
        payload: The update

    Returns:
        Signed UpdateInstruction
    """
    header = UpdateHeader(
        sequence_number=sequence_number,
        effective_time=effective_time,
        timeout=timeout,
        payload_size=len(payload.encode()),
    )
    signatures = signer.sign(update_signing_digest(header, payload))
    return UpdateInstruction(header=header, payload=payload, signatures=signatures)


__all__ = [
    "EFFECTIVE_IMMEDIATELY",
    "UpdatePayload",
    "MicroCCDPerEuroUpdate",
    "EuroPerEnergyUpdate",
    "FoundationAccountUpdate",
    "UpdateHeader",
    "UpdateInstruction",
    "BlockItem",
    "update_signing_digest",
    "update",
]
