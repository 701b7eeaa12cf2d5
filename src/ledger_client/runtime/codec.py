"""
Encoding/Decoding helpers

Wire messages are JSON objects in which every field is optional. This module
provides the helpers used at each decode site to turn an optional field into
a required one, to validate raw JSON into wire models, and the canonical JSON
encoding that transaction hashing and signing are defined over.
"""

from __future__ import annotations
import hashlib
import json
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import DecodeError, MissingFieldError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def require_field(value: Optional[T], name: str) -> T:
    """
    Require an optional wire field to be present.

    Args:
        value: Field value as decoded from the wire
        name: Field name, reported in the error

    Returns:
        The value, unchanged

    Raises:
        MissingFieldError: If the value is None
    """
    if value is None:
        raise MissingFieldError(name)
    return value


def decode_message(model: Type[M], data: Any) -> M:
    """
    Validate decoded JSON against a wire model.

    Raises:
        DecodeError: If the data does not have the shape of the model
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Malformed {model.__name__} message", cause=e)


def decode_json_line(line: bytes) -> Any:
    """Decode one line of a newline-delimited JSON stream."""
    try:
        return json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Invalid JSON in stream: {e}", cause=e)


def hex_to_bytes(value: str, name: str, length: Optional[int] = None) -> bytes:
    """
    Decode a hex-encoded byte field.

    Raises:
        DecodeError: If the value is not hex or has the wrong length
    """
    try:
        raw = bytes.fromhex(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Field {name} is not valid hex", details={"field": name}, cause=e)
    if length is not None and len(raw) != length:
        raise DecodeError(f"Field {name} must be {length} bytes, got {len(raw)}", details={"field": name})
    return raw


def dumps_canonical(obj: Any) -> str:
    """
    Encode an object as canonical JSON.

    Keys are sorted and no whitespace is emitted, so the encoding of a value
    is stable and can be hashed and signed.
    """
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, sort_keys=True)


def canonical_bytes(obj: Any) -> bytes:
    return dumps_canonical(obj).encode("utf-8")


def sha256_bytes(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


__all__ = [
    "require_field",
    "decode_message",
    "decode_json_line",
    "hex_to_bytes",
    "dumps_canonical",
    "canonical_bytes",
    "sha256_bytes",
]
