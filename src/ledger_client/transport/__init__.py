"""
Transport layer for the ledger client.

Provides the HTTP channel shared by client handles.
"""

from .channel import (
    DEFAULT_ENDPOINT, ENDPOINT_ENV_VAR, Channel, ChannelConfig, RawResponse, RawStream
)

__all__ = [
    "DEFAULT_ENDPOINT",
    "ENDPOINT_ENV_VAR",
    "Channel",
    "ChannelConfig",
    "RawResponse",
    "RawStream",
]
