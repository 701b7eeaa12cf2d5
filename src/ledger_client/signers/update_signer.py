r"""
Multi-signature signer for chain updates.

An update is authorized by signatures from a threshold of the keys that the
chain's access structure lists for the update's category. The signer is
built once from the on-chain authorizations and the caller's key pairs and
checks everything up front, so an unusable key set fails before anything is
submitted.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, List

from ..keys.update_keys import UpdateKeyPair
from ..runtime.errors import InvalidKeysError
from ..types import AccessStructure, Authorizations

logger = logging.getLogger(__name__)


class UpdateSigner:
    """
    Holds the authorized key pairs for one update category, keyed by index.

    Signing is pure: ``sign`` returns one signature per held key, ordered by
    ascending key index.
    """

    def __init__(self, keys: Dict[int, UpdateKeyPair]):
        self._keys = dict(sorted(keys.items()))

    @property
    def indices(self) -> List[int]:
        return list(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def sign(self, digest: bytes) -> Dict[int, bytes]:
        """
        Sign a digest with every held key.

        Args:
            digest: Hash of the update to authorize

        Returns:
            Mapping of key index to signature, in ascending index order
        """
        return {index: key.sign(digest) for index, key in self._keys.items()}

    def __repr__(self) -> str:
        return f"UpdateSigner(indices={self.indices})"


def construct_update_signer(
    authorizations: Authorizations,
    access: AccessStructure,
    key_pairs: Iterable[UpdateKeyPair],
) -> UpdateSigner:
    """
    Build a signer for one update category.

    Every key pair must carry an index that the access structure authorizes,
    and its public key must be the chain's key at that index. Each index may
    appear once. At least ``access.threshold`` distinct keys are required.

    Args:
        authorizations: Level 2 update keys from the chain parameters
        access: Access structure of the update category
        key_pairs: Caller's key pairs

    Returns:
        UpdateSigner holding the validated keys

    Raises:
        InvalidKeysError: If the keys do not satisfy the access structure
    """
    keys: Dict[int, UpdateKeyPair] = {}

    for key in key_pairs:
        index = key.index
        if index not in access.authorized_keys:
            raise InvalidKeysError(f"Key index {index} is not authorized for this update",
                                   {"index": index, "authorized": sorted(access.authorized_keys)})
        if index >= len(authorizations.keys):
            raise InvalidKeysError(f"Key index {index} does not exist on chain", {"index": index})
        if authorizations.keys[index].value != key.public_key_bytes:
            raise InvalidKeysError(f"Key {index} does not match the chain's update key at that index",
                                   {"index": index})
        if index in keys:
            raise InvalidKeysError(f"Key index {index} supplied more than once", {"index": index})
        keys[index] = key

    if len(keys) < access.threshold:
        raise InvalidKeysError(
            f"{len(keys)} authorized keys supplied but {access.threshold} are required",
            {"supplied": sorted(keys), "threshold": access.threshold},
        )

    logger.debug(f"Constructed update signer with keys {sorted(keys)} (threshold {access.threshold})")
    return UpdateSigner(keys)


__all__ = ["UpdateSigner", "construct_update_signer"]
