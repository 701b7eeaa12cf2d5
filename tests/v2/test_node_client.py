"""
Tests for the v2 client against the in-process node.
"""

import asyncio

import pytest

from ledger_client.runtime.errors import CallError, DecodeError, ErrorCode, MissingFieldError, TransportError
from ledger_client.runtime.hashes import BlockHash, ModuleRef
from ledger_client.transport import ChannelConfig
from ledger_client.types import AccountAddress, UpdateType
from ledger_client.v2 import AccountIdentifier, BlockIdentifier, Client

from helpers.fake_node import (
    ADDRESS_1, ADDRESS_2, BLOCK_A, BLOCK_B, BLOCK_C, BLOCK_D, chain_parameters_body, sequence_numbers_body,
)


class TestUnaryQueries:
    """Single-value queries return the value paired with the header's block hash."""

    @pytest.mark.asyncio
    async def test_get_account_info(self, fake_node, client):
        fake_node.unary["GetAccountInfo"] = {
            "address": {"value": ADDRESS_1}, "index": 4, "sequence_number": 9, "amount": 1000, "threshold": 1,
        }
        fake_node.block_hash = BLOCK_B

        result = await client.get_account_info(AccountIdentifier.index(4), BlockIdentifier.best())

        assert result.block_hash == BlockHash.from_hex(BLOCK_B)
        assert result.response.address == AccountAddress.from_hex(ADDRESS_1)
        assert result.response.sequence_number == 9
        method, body = fake_node.calls[-1]
        assert method == "GetAccountInfo"
        assert body == {"block_hash": {"best": {}}, "account_identifier": {"account_index": 4}}

    @pytest.mark.asyncio
    async def test_missing_response_field(self, fake_node, client):
        fake_node.unary["GetAccountInfo"] = {"address": {"value": ADDRESS_1}, "index": 4}

        with pytest.raises(MissingFieldError) as exc_info:
            await client.get_account_info(AccountIdentifier.index(4), BlockIdentifier.best())
        assert exc_info.value.field_name == "sequence_number"

    @pytest.mark.asyncio
    async def test_missing_metadata(self, fake_node, client):
        fake_node.unary["GetAccountInfo"] = {}
        fake_node.header_overrides["GetAccountInfo"] = None

        with pytest.raises(CallError) as exc_info:
            await client.get_account_info(AccountIdentifier.index(4), BlockIdentifier.best())
        assert exc_info.value.code == ErrorCode.MISSING_METADATA

    @pytest.mark.asyncio
    async def test_chain_parameters(self, fake_node, client, update_keys):
        fake_node.unary["GetBlockChainParameters"] = chain_parameters_body(update_keys, authorized=[0, 2])

        result = await client.get_block_chain_parameters(BlockIdentifier.last_final())

        params = result.response
        assert params.micro_ccd_per_euro.numerator == 500000
        keys = params.common_update_keys()
        assert len(keys.keys) == 3
        assert keys.access_structure(UpdateType.MICRO_CCD_PER_EURO).authorized_keys == frozenset({0, 2})
        assert keys.micro_ccd_per_euro.threshold == 2
        assert fake_node.calls[-1] == ("GetBlockChainParameters", {"last_final": {}})

    @pytest.mark.asyncio
    async def test_access_structure_with_unknown_key_index(self, fake_node, client, update_keys):
        fake_node.unary["GetBlockChainParameters"] = chain_parameters_body(update_keys, authorized=[0, 5])

        with pytest.raises(DecodeError):
            await client.get_block_chain_parameters(BlockIdentifier.last_final())

    @pytest.mark.asyncio
    async def test_next_update_sequence_numbers(self, fake_node, client):
        fake_node.unary["GetNextUpdateSequenceNumbers"] = sequence_numbers_body(12)

        result = await client.get_next_update_sequence_numbers(BlockIdentifier.last_final())

        assert result.response.micro_ccd_per_euro == 12
        assert result.response.for_update_type(UpdateType.PROTOCOL) == 1
        assert result.block_hash == BlockHash.from_hex(BLOCK_A)


class TestStreamingQueries:
    """Streams are decoded lazily and end cleanly or with the first failure."""

    @pytest.mark.asyncio
    async def test_account_list(self, fake_node, client):
        fake_node.streams["GetAccountList"] = [{"value": ADDRESS_1}, {"value": ADDRESS_2}]

        result = await client.get_account_list(BlockIdentifier.best())

        assert result.block_hash == BlockHash.from_hex(BLOCK_A)
        addresses = [a async for a in result.response]
        assert addresses == [AccountAddress.from_hex(ADDRESS_1), AccountAddress.from_hex(ADDRESS_2)]
        assert result.response.closed

    @pytest.mark.asyncio
    async def test_module_list(self, fake_node, client):
        fake_node.streams["GetModuleList"] = [{"value": BLOCK_C}]

        result = await client.get_module_list(BlockIdentifier.best())

        assert [m async for m in result.response] == [ModuleRef.from_hex(BLOCK_C)]

    @pytest.mark.asyncio
    async def test_ancestors_fewer_than_requested(self, fake_node, client):
        """The node may return fewer ancestors than asked for."""
        fake_node.streams["GetAncestors"] = [{"value": h} for h in (BLOCK_B, BLOCK_C, BLOCK_D)]

        result = await client.get_ancestors(BlockIdentifier.given(BlockHash.from_hex(BLOCK_B)), 10)

        hashes = [h async for h in result.response]
        assert hashes == [BlockHash.from_hex(h) for h in (BLOCK_B, BLOCK_C, BLOCK_D)]
        assert fake_node.calls[-1][1] == {"block_hash": {"given": {"value": BLOCK_B}}, "amount": 10}

    @pytest.mark.asyncio
    async def test_decode_failure_after_earlier_items(self, fake_node, client):
        """Items before a malformed one are yielded, then the stream fails and ends."""
        fake_node.streams["GetAccountList"] = [{"value": ADDRESS_1}, {"value": "not hex"}, {"value": ADDRESS_2}]

        result = await client.get_account_list(BlockIdentifier.best())
        stream = result.response

        assert await stream.__anext__() == AccountAddress.from_hex(ADDRESS_1)
        with pytest.raises(DecodeError):
            await stream.__anext__()
        assert stream.closed
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_in_band_error(self, fake_node, client):
        fake_node.streams["GetAncestors"] = [
            {"value": BLOCK_B}, {"error": {"code": "INTERNAL", "message": "state unavailable"}},
        ]

        result = await client.get_ancestors(BlockIdentifier.best(), 5)
        received = []
        with pytest.raises(CallError) as exc_info:
            async for h in result.response:
                received.append(h)

        assert received == [BlockHash.from_hex(BLOCK_B)]
        assert exc_info.value.status == "INTERNAL"

    @pytest.mark.asyncio
    async def test_stream_without_metadata(self, fake_node, client):
        fake_node.streams["GetAccountList"] = [{"value": ADDRESS_1}]
        fake_node.header_overrides["GetAccountList"] = "ab" * 10

        with pytest.raises(CallError) as exc_info:
            await client.get_account_list(BlockIdentifier.best())
        assert exc_info.value.code == ErrorCode.MISSING_METADATA

    @pytest.mark.asyncio
    async def test_finalized_blocks(self, fake_node, client):
        fake_node.streams["GetFinalizedBlocks"] = [
            {"hash": {"value": BLOCK_A}, "height": 1},
            {"hash": {"value": BLOCK_B}, "height": 2},
        ]
        fake_node.header_overrides["GetFinalizedBlocks"] = None

        async with await client.get_finalized_blocks() as stream:
            blocks = [(b.block_hash, b.height) async for b in stream]

        assert blocks == [(BlockHash.from_hex(BLOCK_A), 1), (BlockHash.from_hex(BLOCK_B), 2)]

    @pytest.mark.asyncio
    async def test_finalized_block_missing_height_ends_feed(self, fake_node, client):
        fake_node.streams["GetFinalizedBlocks"] = [
            {"hash": {"value": BLOCK_A}, "height": 1},
            {"hash": {"value": BLOCK_B}},
            {"hash": {"value": BLOCK_C}, "height": 3},
        ]

        stream = await client.get_finalized_blocks()
        received = []
        with pytest.raises(MissingFieldError):
            async for block in stream:
                received.append(block.height)

        assert received == [1]
        assert stream.closed


class TestCallFailures:
    """Remote failure statuses and transport failures."""

    @pytest.mark.asyncio
    async def test_remote_status(self, fake_node, client):
        fake_node.errors["GetAccountInfo"] = (404, {"code": "NOT_FOUND", "message": "account not found"})

        with pytest.raises(CallError) as exc_info:
            await client.get_account_info(AccountIdentifier.index(99), BlockIdentifier.best())
        assert exc_info.value.status == "NOT_FOUND"
        assert "GetAccountInfo" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_remote_status_on_stream(self, fake_node, client):
        fake_node.errors["GetAncestors"] = (400, {"code": "INVALID_ARGUMENT", "message": "bad block"})

        with pytest.raises(CallError) as exc_info:
            await client.get_ancestors(BlockIdentifier.best(), 3)
        assert exc_info.value.status == "INVALID_ARGUMENT"

    @pytest.mark.asyncio
    async def test_unparsable_error_body(self, fake_node, client):
        fake_node.errors["GetAccountInfo"] = (500, "internal failure")

        with pytest.raises(CallError) as exc_info:
            await client.get_account_info(AccountIdentifier.index(1), BlockIdentifier.best())
        assert exc_info.value.status == "UNKNOWN"

    @pytest.mark.asyncio
    async def test_connection_refused(self, unused_tcp_port):
        handle = await Client.connect(ChannelConfig(endpoint=f"http://127.0.0.1:{unused_tcp_port}", timeout=5.0))
        try:
            with pytest.raises(TransportError) as exc_info:
                await handle.get_block_chain_parameters(BlockIdentifier.best())
            assert exc_info.value.code == ErrorCode.CONNECTION_FAILED
        finally:
            await handle.close()


class TestHandles:
    """Cloning, closing and the one-call-at-a-time rule."""

    @pytest.mark.asyncio
    async def test_clone_shares_channel(self, fake_node):
        first = await Client.connect(fake_node.endpoint)
        second = first.clone()
        channel = first._channel

        assert second._channel is channel
        assert channel.ref_count == 2

        await first.close()
        assert not channel.closed
        fake_node.unary["GetNextUpdateSequenceNumbers"] = sequence_numbers_body()
        await second.get_next_update_sequence_numbers(BlockIdentifier.best())

        await second.close()
        assert channel.closed

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, fake_node):
        handle = await Client.connect(fake_node.endpoint)
        clone = handle.clone()
        await handle.close()
        await handle.close()
        assert handle._channel.ref_count == 1
        await clone.close()

    @pytest.mark.asyncio
    async def test_closed_handle_rejects_calls(self, fake_node):
        handle = await Client.connect(fake_node.endpoint)
        await handle.close()

        with pytest.raises(TransportError):
            await handle.get_block_chain_parameters(BlockIdentifier.best())
        with pytest.raises(TransportError):
            handle.clone()

    @pytest.mark.asyncio
    async def test_concurrent_use_rejected(self, fake_node, client):
        fake_node.unary["GetNextUpdateSequenceNumbers"] = sequence_numbers_body()

        first = asyncio.ensure_future(client.get_next_update_sequence_numbers(BlockIdentifier.best()))
        await asyncio.sleep(0)
        with pytest.raises(CallError) as exc_info:
            await client.get_next_update_sequence_numbers(BlockIdentifier.best())
        assert exc_info.value.code == ErrorCode.CONCURRENT_USE

        await first
        # The handle is usable again once the first call has finished
        await client.get_next_update_sequence_numbers(BlockIdentifier.best())

    @pytest.mark.asyncio
    async def test_clones_run_concurrently(self, fake_node, client):
        fake_node.unary["GetNextUpdateSequenceNumbers"] = sequence_numbers_body()
        other = client.clone()
        try:
            results = await asyncio.gather(
                client.get_next_update_sequence_numbers(BlockIdentifier.best()),
                other.get_next_update_sequence_numbers(BlockIdentifier.best()),
            )
        finally:
            await other.close()
        assert len(results) == 2
