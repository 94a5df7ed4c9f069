"""Fixtures for MCP connection tests."""

from typing import Any

import httpx
import pytest
from mcp_fakes import FakeServer, FakeSocketFactory, FakeStreamFactory, fast_config

from mcp_link.mcp.connection import MCPConnection


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def http_client(server: FakeServer):
    return httpx.AsyncClient(transport=httpx.MockTransport(server.handler))


@pytest.fixture
def streams() -> FakeStreamFactory:
    return FakeStreamFactory()


@pytest.fixture
def make_connection(http_client: httpx.AsyncClient, streams: FakeStreamFactory):
    """Build a connection wired to the fake server and fake streams."""

    def _make(handler: Any = None, **overrides: Any) -> MCPConnection:
        kwargs = {
            key: overrides.pop(key)
            for key in ("logger", "on_status_change", "on_inventory_changed", "socket_factory")
            if key in overrides
        }
        return MCPConnection(
            fast_config(**overrides),
            handler,
            http_client=http_client,
            transport_factory=streams,
            **kwargs,
        )

    return _make




@pytest.fixture
def sockets() -> FakeSocketFactory:
    return FakeSocketFactory()
