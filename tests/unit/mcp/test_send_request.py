"""Unit tests for MCPConnection.send_request over the push-stream variant."""

import httpx
import pytest
from mcp_fakes import connect_ready

from mcp_link.mcp.connection import RECONNECT_FAILED_MESSAGE


def tools_result(body):
    return httpx.Response(
        200, json={"jsonrpc": "2.0", "id": body["id"], "result": {"tools": [{"name": "echo"}]}}
    )


@pytest.mark.unit
class TestSendRequestWhenReady:
    """POST outcomes mapped to JSON-RPC-shaped results."""

    @pytest.mark.asyncio
    async def test_json_response_returned_as_is(self, make_connection, streams, server):
        server.route = tools_result
        conn = make_connection()
        await connect_ready(conn, streams)

        request = conn.request("tools/list")
        result = await conn.send_request(request)

        assert result == {
            "jsonrpc": "2.0",
            "id": request["id"],
            "result": {"tools": [{"name": "echo"}]},
        }
        assert server.bodies[-1] == request
        assert str(server.requests[-1].url) == conn.message_endpoint

    @pytest.mark.asyncio
    async def test_json_error_body_returned_as_is(self, make_connection, streams, server):
        error_body = {"jsonrpc": "2.0", "id": 7, "error": {"code": -32601, "message": "nope"}}
        server.route = lambda body: httpx.Response(400, json=error_body)
        conn = make_connection()
        await connect_ready(conn, streams)

        result = await conn.send_request({"jsonrpc": "2.0", "id": 7, "method": "x"})

        assert result == error_body

    @pytest.mark.asyncio
    async def test_non_json_success_is_synthesized(self, make_connection, streams, server):
        server.route = lambda body: httpx.Response(202, text="Accepted")
        conn = make_connection()
        await connect_ready(conn, streams)

        result = await conn.send_request(conn.request("resources/subscribe", {"uri": "file:///a"}))

        assert result == {"result": {"success": True}}

    @pytest.mark.asyncio
    async def test_http_error_status(self, make_connection, streams, server):
        server.route = lambda body: httpx.Response(500, text="boom")
        conn = make_connection()
        await connect_ready(conn, streams)

        result = await conn.send_request(conn.request("tools/list"))

        assert result == {"error": {"code": 500, "message": "boom"}}

    @pytest.mark.asyncio
    async def test_transport_exception(self, make_connection, streams, server):
        conn = make_connection()
        await connect_ready(conn, streams)
        server.error = httpx.ConnectError("connection refused")

        result = await conn.send_request(conn.request("tools/list"))

        assert result == {"error": {"code": -1, "message": "connection refused"}}


@pytest.mark.unit
class TestSendRequestWhenNotReady:
    """Transparent re-establishment before sending."""

    @pytest.mark.asyncio
    async def test_without_handler_returns_error(self, make_connection, streams, server):
        conn = make_connection()

        result = await conn.send_request(conn.request("tools/list"))

        assert result["error"]["code"] == -1
        assert result["error"]["message"] == "Connection not initialized"
        assert streams.streams == []
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_with_handler_reconnects_once_then_sends(self, make_connection, streams, server):
        streams.auto_endpoint = "/messages?session_id=s1"
        server.route = tools_result
        conn = make_connection(lambda message: None)

        result = await conn.send_request(conn.request("tools/list"))

        assert result["result"] == {"tools": [{"name": "echo"}]}
        assert conn.is_ready
        assert len(streams.streams) == 1
        methods = [body["method"] for body in server.bodies]
        assert methods == ["initialize", "notifications/initialized", "tools/list"]

    @pytest.mark.asyncio
    async def test_with_handler_reconnect_failure_returns_error(
        self, make_connection, streams, server
    ):
        streams.fail_all = True
        conn = make_connection(lambda message: None)

        result = await conn.send_request(conn.request("tools/list"))

        assert result == {"error": {"code": -1, "message": RECONNECT_FAILED_MESSAGE}}
        assert len(streams.streams) == 1
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_after_disconnect_reconnects_with_session(self, make_connection, streams):
        conn = make_connection(lambda message: None)
        await connect_ready(conn, streams)
        await conn.disconnect()
        streams.auto_endpoint = "/messages?session_id=abc123"

        result = await conn.send_request(conn.request("ping"))

        assert "result" in result
        assert "session_id=abc123" in streams.latest.url
