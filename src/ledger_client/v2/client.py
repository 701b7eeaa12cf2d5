"""
Ledger node v2 API client.

Queries that are evaluated against a block return a QueryResponse pairing the
decoded value with the hash of the block the node actually used, which it
reports in the ``blockhash`` response header. Streaming queries return a
QueryStream whose items are decoded as they are pulled.

Example:
    ```python
    async with await Client.connect("http://localhost:20000") as client:
        params = await client.get_block_chain_parameters(BlockIdentifier.last_final())
        print(params.block_hash, params.response.micro_ccd_per_euro)

        accounts = await client.get_account_list(BlockIdentifier.best())
        async with accounts.response as stream:
            async for address in stream:
                print(address)
    ```
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Any, Callable, Generic, Mapping, Optional, TypeVar, Union

import aiohttp

from .. import wire
from ..runtime.codec import decode_message, require_field
from ..runtime.errors import CallError, DecodeError, ErrorCode, TransportError
from ..runtime.hashes import BlockHash, ModuleRef, TransactionHash
from ..transport.channel import Channel, ChannelConfig, RawStream
from ..types import (
    AccountAddress, AccountInfo, ChainParameters, NextUpdateSequenceNumbers,
    TransactionStatus, block_hash_from_wire,
)
from .identifiers import (
    AccountIdentifier, BlockIdentifier, FinalizedBlockInfo, QueryResponse,
    account_info_request, ancestors_request,
)

if TYPE_CHECKING:
    from ..tx.update import BlockItem

logger = logging.getLogger(__name__)

T = TypeVar("T")

BLOCK_HASH_HEADER = "blockhash"

MISSING_METADATA_MESSAGE = "Response does not include the expected metadata."
MALFORMED_METADATA_MESSAGE = "Response does not correctly encode the block hash."


def extract_metadata(headers: Mapping[str, str]) -> BlockHash:
    """
    Get the block hash a response applies to from its headers.

    Args:
        headers: Response headers; the lookup is case-insensitive

    Returns:
        The block hash

    Raises:
        CallError: If the header is absent or is not a 64 character hex string
    """
    value = headers.get(BLOCK_HASH_HEADER)
    if value is None:
        value = next((v for k, v in headers.items() if k.lower() == BLOCK_HASH_HEADER), None)

    if value is None or len(value) != 64:
        raise CallError(MISSING_METADATA_MESSAGE, code=ErrorCode.MISSING_METADATA)

    try:
        return BlockHash.from_hex(value)
    except DecodeError as e:
        raise CallError(MALFORMED_METADATA_MESSAGE, code=ErrorCode.MISSING_METADATA, cause=e)


def _address_item(message: Any) -> AccountAddress:
    return AccountAddress.from_wire(decode_message(wire.HexValue, message))


def _module_ref_item(message: Any) -> ModuleRef:
    value = require_field(decode_message(wire.HexValue, message).value, "value")
    return ModuleRef.from_hex(value)


def _block_hash_item(message: Any) -> BlockHash:
    return block_hash_from_wire(decode_message(wire.HexValue, message))


def _finalized_block_item(message: Any) -> FinalizedBlockInfo:
    return FinalizedBlockInfo.from_wire(decode_message(wire.FinalizedBlockInfo, message))


class QueryStream(Generic[T]):
    """
    Lazily decoded stream of query results.

    Items are decoded one at a time as they are pulled. A message that fails
    to decode ends the stream with a DecodeError; every item before it has
    already been yielded.
    """

    def __init__(self, raw: RawStream, decoder: Callable[[Any], T]):
        self._raw = raw
        self._decoder = decoder

    @property
    def closed(self) -> bool:
        return self._raw.closed

    def __aiter__(self) -> QueryStream[T]:
        return self

    async def __anext__(self) -> T:
        message = await self._raw.__anext__()
        try:
            return self._decoder(message)
        except DecodeError as e:
            logger.error(f"{self._raw.method} stream item {self._raw.count} failed to decode: {e.message}")
            await self._raw.aclose()
            raise

    async def aclose(self) -> None:
        await self._raw.aclose()

    async def __aenter__(self) -> QueryStream[T]:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


class Client:
    """
    Handle to a ledger node.

    A handle runs one call at a time; starting a second call while one is
    being dispatched raises CallError with code CONCURRENT_USE. ``clone()``
    gives another handle over the same connection for concurrent use. The
    connection is closed when the last handle is closed.
    """

    def __init__(self, channel: Channel):
        self._channel = channel.acquire()
        self._in_flight: Optional[str] = None
        self._closed = False

    @classmethod
    async def connect(
        cls,
        endpoint: Union[str, ChannelConfig],
        session: Optional[aiohttp.ClientSession] = None,
    ) -> Client:
        """
        Connect to a node.

        Args:
            endpoint: Node URL or channel configuration
            session: Optional aiohttp session to use for the connection

        Returns:
            A new client handle
        """
        channel = Channel(endpoint, session).open()
        return cls(channel)

    @property
    def endpoint(self) -> str:
        return self._channel.endpoint

    @property
    def closed(self) -> bool:
        return self._closed

    def clone(self) -> Client:
        """Another handle over the same connection."""
        if self._closed:
            raise TransportError("Cannot clone a closed client", ErrorCode.CHANNEL_CLOSED)
        return Client(self._channel)

    async def close(self) -> None:
        """Close this handle. The connection closes with its last handle."""
        if self._closed:
            return
        self._closed = True
        await self._channel.release()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # Dispatch
    # =========================================================================

    def _begin(self, method: str) -> None:
        if self._closed:
            raise TransportError(f"{method} called on a closed client", ErrorCode.CHANNEL_CLOSED)
        if self._in_flight is not None:
            raise CallError(
                f"{method} started while {self._in_flight} is in flight on the same client handle",
                status="FAILED_PRECONDITION",
                code=ErrorCode.CONCURRENT_USE,
                details={"operation": method, "in_flight": self._in_flight},
            )
        self._in_flight = method

    async def _unary(self, method: str, request: Union[wire.WireMessage, dict]):
        self._begin(method)
        try:
            return await self._channel.unary(method, request)
        finally:
            self._in_flight = None

    async def _stream(self, method: str, request: Union[wire.WireMessage, dict]) -> RawStream:
        self._begin(method)
        try:
            return await self._channel.server_streaming(method, request)
        finally:
            self._in_flight = None

    async def _enveloped_stream(
        self,
        method: str,
        request: wire.WireMessage,
        decoder: Callable[[Any], T],
    ) -> QueryResponse[QueryStream[T]]:
        raw = await self._stream(method, request)
        try:
            block_hash = extract_metadata(raw.headers)
        except CallError:
            await raw.aclose()
            raise
        return QueryResponse(block_hash=block_hash, response=QueryStream(raw, decoder))

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_account_info(
        self, acc: AccountIdentifier, bi: BlockIdentifier
    ) -> QueryResponse[AccountInfo]:
        """
        Get the state of an account as of a block.

        Args:
            acc: Account to query
            bi: Block to evaluate the query in

        Returns:
            QueryResponse with the AccountInfo and the block it applies to
        """
        raw = await self._unary("GetAccountInfo", account_info_request(acc, bi))
        block_hash = extract_metadata(raw.headers)
        info = AccountInfo.from_wire(decode_message(wire.AccountInfo, raw.message))
        return QueryResponse(block_hash=block_hash, response=info)

    async def get_account_list(self, bi: BlockIdentifier) -> QueryResponse[QueryStream[AccountAddress]]:
        """Stream the addresses of every account that exists in a block."""
        return await self._enveloped_stream("GetAccountList", bi.to_wire(), _address_item)

    async def get_module_list(self, bi: BlockIdentifier) -> QueryResponse[QueryStream[ModuleRef]]:
        """Stream the references of every smart contract module deployed in a block."""
        return await self._enveloped_stream("GetModuleList", bi.to_wire(), _module_ref_item)

    async def get_ancestors(
        self, bi: BlockIdentifier, amount: int
    ) -> QueryResponse[QueryStream[BlockHash]]:
        """
        Stream up to ``amount`` ancestors of a block, starting with the block
        itself. The node returns fewer when the chain is shorter.
        """
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        return await self._enveloped_stream("GetAncestors", ancestors_request(bi, amount), _block_hash_item)

    async def get_finalized_blocks(self) -> QueryStream[FinalizedBlockInfo]:
        """
        Subscribe to blocks as they are finalized.

        The feed does not end on its own; close the returned stream to
        unsubscribe.
        """
        raw = await self._stream("GetFinalizedBlocks", wire.Empty())
        return QueryStream(raw, _finalized_block_item)

    async def get_block_chain_parameters(self, bi: BlockIdentifier) -> QueryResponse[ChainParameters]:
        raw = await self._unary("GetBlockChainParameters", bi.to_wire())
        block_hash = extract_metadata(raw.headers)
        params = ChainParameters.from_wire(decode_message(wire.ChainParameters, raw.message))
        return QueryResponse(block_hash=block_hash, response=params)

    async def get_next_update_sequence_numbers(
        self, bi: BlockIdentifier
    ) -> QueryResponse[NextUpdateSequenceNumbers]:
        raw = await self._unary("GetNextUpdateSequenceNumbers", bi.to_wire())
        block_hash = extract_metadata(raw.headers)
        numbers = NextUpdateSequenceNumbers.from_wire(decode_message(wire.NextUpdateSequenceNumbers, raw.message))
        return QueryResponse(block_hash=block_hash, response=numbers)

    # =========================================================================
    # Submission
    # =========================================================================

    async def send_block_item(self, item: BlockItem) -> TransactionHash:
        """
        Submit a block item.

        Args:
            item: Signed block item

        Returns:
            Hash under which the node tracks the submission
        """
        raw = await self._unary("SendBlockItem", item.to_wire())
        value = require_field(decode_message(wire.HexValue, raw.message).value, "value")
        tx_hash = TransactionHash.from_hex(value)

        expected = item.hash()
        if tx_hash != expected:
            logger.warning(f"Node reported submission hash {tx_hash}, locally computed {expected}")
        logger.info(f"Submitted block item {tx_hash}")
        return tx_hash

    async def get_block_item_status(self, tx_hash: TransactionHash) -> TransactionStatus:
        """Get the current status of a submitted block item."""
        raw = await self._unary("GetBlockItemStatus", wire.HexValue(value=tx_hash.hex()))
        return TransactionStatus.from_wire(decode_message(wire.BlockItemStatus, raw.message))

    def __repr__(self) -> str:
        return f"Client(endpoint={self.endpoint!r}, closed={self._closed})"


__all__ = [
    "BLOCK_HASH_HEADER",
    "Client",
    "QueryStream",
    "extract_metadata",
]
