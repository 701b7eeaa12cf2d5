"""
Chain update transactions and submission tracking.
"""

from .update import (
    EFFECTIVE_IMMEDIATELY,
    BlockItem,
    EuroPerEnergyUpdate,
    FoundationAccountUpdate,
    MicroCCDPerEuroUpdate,
    UpdateHeader,
    UpdateInstruction,
    UpdatePayload,
    update,
    update_signing_digest,
)
from .status import SubmissionTracker, TrackerConfig

__all__ = [
    "EFFECTIVE_IMMEDIATELY",
    "BlockItem",
    "EuroPerEnergyUpdate",
    "FoundationAccountUpdate",
    "MicroCCDPerEuroUpdate",
    "UpdateHeader",
    "UpdateInstruction",
    "UpdatePayload",
    "update",
    "update_signing_digest",
    "SubmissionTracker",
    "TrackerConfig",
]
