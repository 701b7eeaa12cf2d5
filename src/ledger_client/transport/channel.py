"""
HTTP channel to a ledger node.

A Channel owns one aiohttp session and is shared by every client handle
cloned from the same connection. Handles acquire and release it; the session
is closed when the last handle releases it.

Unary calls return the decoded JSON body together with the response headers.
Server-streaming calls return a RawStream that reads one newline-delimited
JSON message at a time, so a consumer that stops pulling stops the transport
from reading further.
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import aiohttp

from ..runtime.codec import decode_json_line
from ..runtime.errors import (
    CallError, DecodeError, ErrorCode, TransportError, error_from_response
)
from ..wire import WireMessage

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:20000"
ENDPOINT_ENV_VAR = "LEDGER_NODE_ENDPOINT"
API_PREFIX = "/v2"


@dataclass
class ChannelConfig:
    """Configuration for a node channel."""
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = 30.0  # Total time for a unary call
    connect_timeout: float = 10.0
    headers: Optional[Dict[str, str]] = None

    @classmethod
    def from_env(cls, **overrides) -> "ChannelConfig":
        """Build a config whose endpoint comes from LEDGER_NODE_ENDPOINT when set."""
        endpoint = os.environ.get(ENDPOINT_ENV_VAR) or DEFAULT_ENDPOINT
        return cls(endpoint=overrides.pop("endpoint", endpoint), **overrides)


@dataclass
class RawResponse:
    """Headers and decoded JSON body of a unary call."""
    headers: Mapping[str, str]
    message: Any


class RawStream:
    """
    Body of a server-streaming call.

    Async-iterates decoded JSON messages. An in-band error record ends the
    stream with a CallError. ``aclose()`` releases the HTTP response early.
    """

    def __init__(self, method: str, response: aiohttp.ClientResponse):
        self.method = method
        self.headers: Mapping[str, str] = response.headers
        self._response: Optional[aiohttp.ClientResponse] = response
        self.count = 0

    @property
    def closed(self) -> bool:
        return self._response is None

    def __aiter__(self):
        return self

    async def __anext__(self) -> Any:
        while True:
            if self._response is None:
                raise StopAsyncIteration

            try:
                line = await self._response.content.readline()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.close()
                logger.error(f"{self.method} stream failed: {e}")
                raise TransportError(f"{self.method} stream failed", cause=e)
            except ValueError as e:
                # Raised by the reader for a line beyond its buffer limit
                self.close()
                logger.error(f"{self.method} stream message too large: {e}")
                raise DecodeError(f"{self.method} stream message exceeds the read buffer", cause=e)

            if not line:
                logger.debug(f"{self.method} stream ended after {self.count} messages")
                self.close()
                raise StopAsyncIteration

            line = line.strip()
            if not line:
                continue

            try:
                message = decode_json_line(line)
            except DecodeError:
                self.close()
                raise

            if isinstance(message, dict) and set(message) == {"error"}:
                self.close()
                raise error_from_response(200, message, self.method)

            self.count += 1
            return message

    def close(self) -> None:
        if self._response is not None:
            self._response.close()
            self._response = None

    async def aclose(self) -> None:
        self.close()


class Channel:
    """
    Shared transport to one node endpoint.

    Reference-counted: ``acquire()`` registers a handle, ``release()``
    unregisters it and closes the session after the last handle.
    """

    def __init__(self, config: Union[str, ChannelConfig], session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize channel.

        Args:
            config: Endpoint URL or channel configuration
            session: Optional aiohttp session to use instead of creating one;
                a session passed in is never closed by the channel
        """
        if isinstance(config, str):
            config = ChannelConfig(endpoint=config)

        self.config = config
        self._session = session
        self._owns_session = session is None
        self._refs = 0
        self.closed = False

        self._unary_timeout = aiohttp.ClientTimeout(total=config.timeout, connect=config.connect_timeout)
        # Streams, the finalized-blocks feed in particular, are unbounded
        self._stream_timeout = aiohttp.ClientTimeout(total=None, connect=config.connect_timeout)

    @property
    def endpoint(self) -> str:
        return self.config.endpoint.rstrip("/")

    @property
    def ref_count(self) -> int:
        return self._refs

    def open(self) -> "Channel":
        """Create the HTTP session. Must be called from a running event loop."""
        if self.closed:
            raise TransportError("Channel has been closed", ErrorCode.CHANNEL_CLOSED)
        if self._session is None:
            self._session = aiohttp.ClientSession(headers=self.config.headers or {})
            logger.info(f"Opened channel to {self.endpoint}")
        return self

    def acquire(self) -> "Channel":
        if self.closed:
            raise TransportError("Channel has been closed", ErrorCode.CHANNEL_CLOSED)
        self._refs += 1
        return self

    async def release(self) -> None:
        if self._refs == 0:
            return
        self._refs -= 1
        if self._refs == 0:
            await self.close()

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
        logger.info(f"Closed channel to {self.endpoint}")

    def _url(self, method: str) -> str:
        return f"{self.endpoint}{API_PREFIX}/{method}"

    def _require_session(self) -> aiohttp.ClientSession:
        if self.closed or self._session is None:
            raise TransportError("Channel is not open", ErrorCode.CHANNEL_CLOSED)
        return self._session

    @staticmethod
    def _body(request: Union[WireMessage, Dict[str, Any]]) -> Dict[str, Any]:
        if isinstance(request, WireMessage):
            return request.to_json_dict()
        return request

    @staticmethod
    async def _read_error_body(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except (ValueError, aiohttp.ClientError):
            return None

    def _transport_error(self, method: str, error: Exception) -> TransportError:
        if isinstance(error, asyncio.TimeoutError):
            code = ErrorCode.TIMEOUT
        elif isinstance(error, aiohttp.ClientConnectorError):
            code = ErrorCode.CONNECTION_FAILED
        else:
            code = ErrorCode.TRANSPORT_ERROR
        logger.error(f"{method} could not be dispatched to {self.endpoint}: {error}")
        return TransportError(f"{method} could not be dispatched", code,
                              {"endpoint": self.endpoint, "operation": method}, error)

    async def unary(self, method: str, request: Union[WireMessage, Dict[str, Any]]) -> RawResponse:
        """
        Make a unary call.

        Raises:
            TransportError: If the call could not be dispatched
            CallError: If the node returned a failure status
            DecodeError: If the body is not JSON
        """
        session = self._require_session()
        logger.debug(f"Calling {method}")

        try:
            async with session.post(self._url(method), json=self._body(request),
                                    timeout=self._unary_timeout) as response:
                if response.status >= 300:
                    raise error_from_response(response.status, await self._read_error_body(response), method)
                payload = await response.read()
                headers = response.headers
        except CallError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise self._transport_error(method, e)

        try:
            message = json.loads(payload) if payload else {}
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"{method} returned a body that is not JSON", cause=e)

        return RawResponse(headers=headers, message=message)

    async def server_streaming(self, method: str, request: Union[WireMessage, Dict[str, Any]]) -> RawStream:
        """
        Open a server-streaming call.

        Returns once the response headers have arrived; messages are read as
        the returned stream is iterated.
        """
        session = self._require_session()
        logger.debug(f"Opening stream {method}")

        try:
            response = await session.post(self._url(method), json=self._body(request),
                                          timeout=self._stream_timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise self._transport_error(method, e)

        if response.status >= 300:
            try:
                body = await self._read_error_body(response)
            finally:
                response.close()
            raise error_from_response(response.status, body, method)

        return RawStream(method, response)


__all__ = [
    "DEFAULT_ENDPOINT",
    "ENDPOINT_ENV_VAR",
    "ChannelConfig",
    "RawResponse",
    "RawStream",
    "Channel",
]
