"""
Shared fixtures: an in-process node and client handles connected to it.
"""

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from ledger_client.v2 import Client

from helpers.fake_node import FakeNode, make_update_keys


@pytest_asyncio.fixture
async def fake_node():
    """Node served on a local port for the duration of a test."""
    node = FakeNode()
    server = TestServer(node.app())
    await server.start_server()
    node.endpoint = str(server.make_url("/")).rstrip("/")
    yield node
    await server.close()


@pytest_asyncio.fixture
async def client(fake_node):
    """Client handle connected to the fake node."""
    handle = await Client.connect(fake_node.endpoint)
    yield handle
    await handle.close()


@pytest.fixture
def update_keys():
    """Three deterministic update key pairs, indices 0, 1 and 2."""
    return make_update_keys(3)
