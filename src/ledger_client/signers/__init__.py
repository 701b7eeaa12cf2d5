"""
Signers for chain updates.
"""

from .update_signer import UpdateSigner, construct_update_signer

__all__ = ["UpdateSigner", "construct_update_signer"]
