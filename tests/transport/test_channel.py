"""
Tests for channel configuration and lifecycle.
"""

from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest

from ledger_client.runtime.errors import DecodeError, ErrorCode, TransportError
from ledger_client.transport import DEFAULT_ENDPOINT, Channel, ChannelConfig, RawStream


class TestChannelConfig:
    """Tests for ChannelConfig."""

    def test_defaults(self):
        config = ChannelConfig()
        assert config.endpoint == DEFAULT_ENDPOINT
        assert config.timeout == 30.0
        assert config.connect_timeout == 10.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LEDGER_NODE_ENDPOINT", "http://node:1234")
        assert ChannelConfig.from_env().endpoint == "http://node:1234"

    def test_from_env_unset(self, monkeypatch):
        monkeypatch.delenv("LEDGER_NODE_ENDPOINT", raising=False)
        assert ChannelConfig.from_env(timeout=5.0) == ChannelConfig(timeout=5.0)

    def test_explicit_endpoint_wins(self, monkeypatch):
        monkeypatch.setenv("LEDGER_NODE_ENDPOINT", "http://node:1234")
        assert ChannelConfig.from_env(endpoint="http://other:1").endpoint == "http://other:1"


class TestChannel:
    """Tests for Channel reference counting."""

    def test_url(self):
        channel = Channel("http://localhost:20000/")
        assert channel._url("GetAccountInfo") == "http://localhost:20000/v2/GetAccountInfo"

    @pytest.mark.asyncio
    async def test_release_closes_at_zero(self):
        channel = Channel("http://localhost:20000").open()
        channel.acquire()
        channel.acquire()

        await channel.release()
        assert not channel.closed
        await channel.release()
        assert channel.closed

    @pytest.mark.asyncio
    async def test_closed_channel_cannot_be_acquired(self):
        channel = Channel("http://localhost:20000").open()
        await channel.close()
        with pytest.raises(TransportError) as exc_info:
            channel.acquire()
        assert exc_info.value.code == ErrorCode.CHANNEL_CLOSED

    @pytest.mark.asyncio
    async def test_call_on_unopened_channel(self):
        channel = Channel("http://localhost:20000")
        with pytest.raises(TransportError):
            await channel.unary("GetAccountInfo", {})


class TestRawStream:
    """Reading failures close the response."""

    @staticmethod
    def response(readline):
        response = Mock()
        response.headers = {}
        response.content.readline = readline
        return response

    @pytest.mark.asyncio
    async def test_oversized_line(self):
        response = self.response(AsyncMock(side_effect=ValueError("Chunk too big")))
        stream = RawStream("GetAccountList", response)

        with pytest.raises(DecodeError) as exc_info:
            await stream.__anext__()

        assert "GetAccountList" in exc_info.value.message
        assert stream.closed
        response.close.assert_called_once()
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_connection_lost(self):
        response = self.response(AsyncMock(side_effect=aiohttp.ClientPayloadError("connection lost")))
        stream = RawStream("GetAncestors", response)

        with pytest.raises(TransportError):
            await stream.__anext__()
        response.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_messages_then_end(self):
        response = self.response(AsyncMock(side_effect=[b'{"value": "01"}\n', b"\n", b""]))
        stream = RawStream("GetModuleList", response)

        assert [m async for m in stream] == [{"value": "01"}]
        assert stream.count == 1
        assert stream.closed
