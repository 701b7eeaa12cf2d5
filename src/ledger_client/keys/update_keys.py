r"""
Update key pairs and key files.

A key file holds one JSON object:

    {"index": 3, "signKey": "<64 hex>", "verifyKey": "<64 hex>"}

where ``index`` is the position of the key in the chain's level 2 update keys.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, List, Union

from pydantic import BaseModel, Field, ValidationError

from ..crypto.ed25519 import Ed25519Error, Ed25519KeyPair
from ..runtime.errors import KeyFileError

logger = logging.getLogger(__name__)

MAX_KEY_INDEX = 2**16 - 1


class UpdateKeyFile(BaseModel):
    """On-disk shape of an update key pair."""
    index: int = Field(ge=0, le=MAX_KEY_INDEX)
    sign_key: str = Field(alias="signKey")
    verify_key: str = Field(alias="verifyKey")

    model_config = {"populate_by_name": True}


class UpdateKeyPair:
    """An Ed25519 key pair together with its update key index."""

    def __init__(self, index: int, key_pair: Ed25519KeyPair):
        if not 0 <= index <= MAX_KEY_INDEX:
            raise ValueError(f"Update key index must be between 0 and {MAX_KEY_INDEX}, got {index}")
        self.index = index
        self.key_pair = key_pair

    @property
    def public_key_bytes(self) -> bytes:
        return self.key_pair.public_key_bytes()

    def sign(self, message: bytes) -> bytes:
        return self.key_pair.sign(message)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "signKey": self.key_pair.private_key.to_hex(),
            "verifyKey": self.key_pair.public_key.to_hex(),
        }

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> UpdateKeyPair:
        """
        Parse a key pair from its JSON encoding.

        Raises:
            ValidationError: If the JSON does not have the key file shape
            Ed25519Error: If the keys are invalid or do not match
        """
        parsed = UpdateKeyFile.model_validate_json(data)
        return cls(parsed.index, Ed25519KeyPair.from_hex(parsed.sign_key, parsed.verify_key))

    def __repr__(self) -> str:
        return f"UpdateKeyPair(index={self.index}, public={self.key_pair.public_key.to_hex()})"


def load_update_key(path: Union[str, Path]) -> UpdateKeyPair:
    """
    Load one update key pair from a file.

    Raises:
        KeyFileError: If the file cannot be read or does not hold a valid key pair
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise KeyFileError(f"Could not open key file {path}: {e.strerror or e}", str(path), e)

    try:
        key = UpdateKeyPair.from_json(data)
    except (ValidationError, Ed25519Error) as e:
        raise KeyFileError(f"Could not read keys from file {path}", str(path), e)

    logger.debug(f"Loaded update key {key.index} from {path}")
    return key


def load_update_keys(paths: Iterable[Union[str, Path]]) -> List[UpdateKeyPair]:
    """Load update key pairs from several files, failing on the first bad one."""
    return [load_update_key(p) for p in paths]


__all__ = [
    "MAX_KEY_INDEX",
    "UpdateKeyFile",
    "UpdateKeyPair",
    "load_update_key",
    "load_update_keys",
]
