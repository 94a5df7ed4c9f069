"""Unit tests for push-stream MCP connections."""

import asyncio
import io
import json

import httpx
import pytest
from mcp_fakes import connect_ready, eventually

from mcp_link.config.models import ReconnectConfig
from mcp_link.errors import LinkError
from mcp_link.logging import LinkLogger, LogConfig
from mcp_link.mcp.protocol import CLIENT_CAPABILITIES, CLIENT_INFO, PROTOCOL_VERSION
from mcp_link.types import ConnectionStatus, InventoryKind, LogFormat, LogLevel


@pytest.mark.unit
class TestEstablishment:
    """Stream URL, endpoint resolution and handshake."""

    @pytest.mark.asyncio
    async def test_connect_runs_handshake_and_becomes_ready(self, make_connection, streams, server):
        conn = make_connection(lambda message: None, auth_header="Bearer secret")

        result = await connect_ready(conn, streams)

        assert result is conn
        assert conn.status == ConnectionStatus.READY
        assert conn.is_ready
        assert conn.session_id == "abc123"
        assert conn.message_endpoint == "https://host:1234/messages?session_id=abc123"
        assert conn.retry_state.attempts == 0

        initialize, initialized = server.bodies
        assert initialize["method"] == "initialize"
        assert initialize["params"] == {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": CLIENT_CAPABILITIES,
            "clientInfo": CLIENT_INFO,
        }
        assert initialized["method"] == "notifications/initialized"
        assert "id" not in initialized

        for request in server.requests:
            assert str(request.url) == "https://host:1234/messages?session_id=abc123"
            assert request.headers["content-type"] == "application/json"
            assert request.headers["authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_plain_url_when_no_command_env_or_session(self, make_connection, streams):
        conn = make_connection()

        await connect_ready(conn, streams)

        assert streams.urls == ["https://host:1234/sse"]

    @pytest.mark.asyncio
    async def test_command_args_and_env_on_stream_url(self, make_connection, streams):
        conn = make_connection(command="npx", args=["-y", "", "server"], env={"A": "1"})

        await connect_ready(conn, streams)

        url = streams.urls[0]
        assert "transportType=stdio" in url
        assert "command=npx" in url
        assert "args=-y%20server" in url
        assert "env=%7B%22A%22%3A%221%22%7D" in url

    @pytest.mark.asyncio
    async def test_invalid_env_string_is_ignored(self, make_connection, streams):
        conn = make_connection(env="{not json")

        await connect_ready(conn, streams)

        assert "env=" not in streams.urls[0]

    @pytest.mark.asyncio
    async def test_inline_initialize_result_is_recorded(self, make_connection, streams, server):
        server.initialize_response = httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "result": {"capabilities": {"tools": {}}, "serverInfo": {"name": "srv"}},
            },
        )
        conn = make_connection()

        await connect_ready(conn, streams)

        assert conn.capabilities == {"tools": {}}
        assert conn.server_info == {"name": "srv"}

    @pytest.mark.asyncio
    async def test_initialize_result_on_stream_is_recorded_and_forwarded(
        self, make_connection, streams
    ):
        received = []
        conn = make_connection(received.append)
        await connect_ready(conn, streams)

        message = {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {"capabilities": {"resources": {}}, "serverInfo": {"name": "srv"}},
        }
        await streams.latest.emit_message(message)

        assert conn.server_info == {"name": "srv"}
        assert conn.capabilities == {"resources": {}}
        assert received == [message]

    @pytest.mark.asyncio
    async def test_handshake_failure_raises_and_tears_down(self, make_connection, streams, server):
        server.initialize_response = httpx.Response(500, text="nope")
        conn = make_connection()

        with pytest.raises(LinkError) as exc_info:
            await connect_ready(conn, streams)

        assert exc_info.value.code == "HANDSHAKE_FAILED"
        assert "500" in str(exc_info.value)
        assert "nope" in str(exc_info.value)
        assert conn.status == ConnectionStatus.DISCONNECTED
        assert streams.latest.closed
        # Only the initialize request was sent
        assert len(server.requests) == 1

    @pytest.mark.asyncio
    async def test_invalid_endpoint_fails_connect(self, make_connection, streams):
        conn = make_connection()

        with pytest.raises(LinkError) as exc_info:
            await connect_ready(conn, streams, endpoint="ftp://elsewhere/messages")

        assert exc_info.value.code == "ENDPOINT_INVALID"
        assert conn.status == ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_first_attempt_transport_error_does_not_retry(self, make_connection, streams):
        streams.fail_all = True
        conn = make_connection()

        with pytest.raises(LinkError) as exc_info:
            await conn.connect()

        assert exc_info.value.code == "CONNECTION_FAILED"
        assert conn.status == ConnectionStatus.DISCONNECTED
        await asyncio.sleep(0.02)
        assert len(streams.streams) == 1

    @pytest.mark.asyncio
    async def test_connect_timeout(self, make_connection, streams):
        conn = make_connection(connect_timeout=0.05)

        with pytest.raises(LinkError) as exc_info:
            await conn.connect()

        assert exc_info.value.code == "CONNECTION_TIMEOUT"
        assert conn.status == ConnectionStatus.DISCONNECTED
        assert streams.latest.closed

    @pytest.mark.asyncio
    async def test_unsupported_transport(self, make_connection):
        conn = make_connection(transport="carrier-pigeon")

        with pytest.raises(LinkError) as exc_info:
            await conn.connect()

        assert exc_info.value.code == "TRANSPORT_UNSUPPORTED"


@pytest.mark.unit
class TestMessages:
    """Inbound message forwarding."""

    @pytest.mark.asyncio
    async def test_messages_forwarded_verbatim(self, make_connection, streams):
        received = []
        conn = make_connection(received.append)
        await connect_ready(conn, streams)

        notification = {"jsonrpc": "2.0", "method": "notifications/tools/list_changed"}
        await streams.latest.emit_message(notification)

        assert received == [notification]

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self, make_connection, streams):
        received = []

        async def handler(message):
            await asyncio.sleep(0)
            received.append(message)

        conn = make_connection(handler)
        await connect_ready(conn, streams)
        await streams.latest.emit_message({"jsonrpc": "2.0", "method": "ping"})

        assert received == [{"jsonrpc": "2.0", "method": "ping"}]

    @pytest.mark.asyncio
    async def test_malformed_messages_are_dropped(self, make_connection, streams):
        received = []
        conn = make_connection(received.append)
        await connect_ready(conn, streams)

        await streams.latest.emit_message("{not json")
        await streams.latest.emit_message("[1, 2, 3]")

        assert received == []
        assert conn.is_ready

    @pytest.mark.asyncio
    async def test_handler_exception_does_not_break_connection(self, make_connection, streams):
        def handler(message):
            raise RuntimeError("handler bug")

        conn = make_connection(handler)
        await connect_ready(conn, streams)
        await streams.latest.emit_message({"jsonrpc": "2.0", "method": "ping"})

        assert conn.is_ready

    @pytest.mark.asyncio
    async def test_different_handler_conflicts(self, make_connection):
        conn = make_connection(lambda message: None)

        with pytest.raises(LinkError) as exc_info:
            await conn.connect(lambda message: None)

        assert exc_info.value.code == "HANDLER_CONFLICT"
        assert conn.status == ConnectionStatus.DISCONNECTED


@pytest.mark.unit
class TestReconnection:
    """Backoff reconnection after the stream is lost."""

    @pytest.mark.asyncio
    async def test_reconnect_reuses_session_and_reruns_handshake(
        self, make_connection, streams, server
    ):
        received = []
        conn = make_connection(received.append)
        await connect_ready(conn, streams)
        first = streams.latest

        await first.emit_error()

        assert first.closed
        assert conn.status == ConnectionStatus.CONNECTING
        assert conn.retry_state.attempts == 1

        await eventually(lambda: len(streams.streams) == 2 and streams.latest.opened)
        assert "session_id=abc123" in streams.latest.url

        await streams.latest.emit_endpoint("/messages?session_id=abc123")
        await eventually(lambda: conn.is_ready)

        assert conn.retry_state.attempts == 0
        assert conn.retry_state.delay == conn.policy.initial_delay
        methods = [body["method"] for body in server.bodies]
        assert methods == ["initialize", "notifications/initialized"] * 2

        # The superseded stream no longer reaches the handler
        await first.emit_message({"jsonrpc": "2.0", "method": "stale"})
        assert received == []

    @pytest.mark.asyncio
    async def test_retry_budget_is_bounded(self, make_connection, streams):
        conn = make_connection(
            reconnect=ReconnectConfig(max_attempts=2, initial_delay=0.001, max_delay=0.01)
        )
        await connect_ready(conn, streams)

        await streams.latest.emit_error()
        await eventually(lambda: len(streams.streams) == 2 and streams.latest.opened)
        await streams.latest.emit_error()
        await eventually(lambda: len(streams.streams) == 3 and streams.latest.opened)
        assert conn.retry_state.attempts == 2

        await streams.latest.emit_error()

        assert conn.status == ConnectionStatus.DISCONNECTED
        await asyncio.sleep(0.05)
        assert len(streams.streams) == 3

    @pytest.mark.asyncio
    async def test_default_budget_of_five_then_teardown(self, make_connection, streams):
        budget = ReconnectConfig().max_attempts
        assert budget == 5
        conn = make_connection(reconnect=ReconnectConfig(initial_delay=0.001, max_delay=0.01))
        await connect_ready(conn, streams)

        for attempt in range(1, budget + 1):
            await streams.latest.emit_error()
            assert conn.retry_state.attempts == attempt
            expected = attempt + 1
            await eventually(lambda n=expected: len(streams.streams) == n and streams.latest.opened)

        await streams.latest.emit_error()

        assert conn.status == ConnectionStatus.DISCONNECTED
        await asyncio.sleep(0.05)
        assert len(streams.streams) == budget + 1
        assert conn.get_status().next_retry_delay is None

    @pytest.mark.asyncio
    async def test_connect_after_mid_cycle_disconnect_is_first_attempt(
        self, make_connection, streams
    ):
        conn = make_connection(
            reconnect=ReconnectConfig(max_attempts=5, initial_delay=0.05, max_delay=0.05)
        )
        await connect_ready(conn, streams)
        await streams.latest.emit_error()
        assert conn.retry_state.attempts == 1
        await conn.disconnect()

        streams.fail_all = True
        opened_before = len(streams.streams)
        with pytest.raises(LinkError) as exc_info:
            await conn.connect()

        assert exc_info.value.code == "CONNECTION_FAILED"
        await asyncio.sleep(0.2)
        assert len(streams.streams) == opened_before + 1
        assert conn.status == ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_backoff_delay_doubles_between_attempts(self, make_connection, streams):
        conn = make_connection(
            reconnect=ReconnectConfig(max_attempts=5, initial_delay=0.001, max_delay=1.0)
        )
        await connect_ready(conn, streams)

        await streams.latest.emit_error()
        assert conn.retry_state.delay == pytest.approx(0.002)
        await eventually(lambda: len(streams.streams) == 2 and streams.latest.opened)

        await streams.latest.emit_error()
        assert conn.retry_state.delay == pytest.approx(0.004)


@pytest.mark.unit
class TestDisconnect:
    """disconnect() and aclose()."""

    @pytest.mark.asyncio
    async def test_disconnect_clears_state_and_keeps_session(self, make_connection, streams):
        conn = make_connection()
        await connect_ready(conn, streams)
        conn.resources["file:///a"] = {}
        conn.tools["echo"] = {}
        conn.subscriptions.add("file:///a")

        await conn.disconnect()

        assert conn.status == ConnectionStatus.DISCONNECTED
        assert streams.latest.closed
        assert conn.resources == {}
        assert conn.tools == {}
        assert conn.subscriptions == set()
        assert conn.capabilities is None
        assert conn.session_id == "abc123"

        # Idempotent
        await conn.disconnect()
        assert conn.status == ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_fails_pending_connect(self, make_connection, streams):
        conn = make_connection()
        task = asyncio.create_task(conn.connect())
        await eventually(lambda: bool(streams.streams) and streams.latest.opened)

        await conn.disconnect()

        with pytest.raises(LinkError):
            await task

    @pytest.mark.asyncio
    async def test_disconnect_cancels_scheduled_retry(self, make_connection, streams):
        conn = make_connection(
            reconnect=ReconnectConfig(max_attempts=5, initial_delay=0.05, max_delay=0.05)
        )
        await connect_ready(conn, streams)
        await streams.latest.emit_error()

        await conn.disconnect()
        await asyncio.sleep(0.1)

        assert len(streams.streams) == 1
        assert conn.status == ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_reconnect_after_disconnect_resumes_session(self, make_connection, streams):
        conn = make_connection()
        await connect_ready(conn, streams)
        await conn.disconnect()

        await connect_ready(conn, streams)

        assert "session_id=abc123" in streams.latest.url

    @pytest.mark.asyncio
    async def test_aclose_forgets_session(self, make_connection, streams):
        conn = make_connection()
        await connect_ready(conn, streams)

        await conn.aclose()

        assert conn.session_id is None
        assert conn.status == ConnectionStatus.DISCONNECTED


@pytest.mark.unit
class TestObservers:
    """Status, inventory and logging hooks."""

    @pytest.mark.asyncio
    async def test_status_changes_are_reported(self, make_connection, streams):
        changes = []
        conn = make_connection(on_status_change=lambda name, status: changes.append(status))

        await connect_ready(conn, streams)
        await conn.disconnect()

        assert changes == [
            ConnectionStatus.CONNECTING,
            ConnectionStatus.HANDSHAKING,
            ConnectionStatus.READY,
            ConnectionStatus.DISCONNECTED,
        ]

    def test_inventory_notifications(self, make_connection):
        events = []
        conn = make_connection(
            on_inventory_changed=lambda name, kind, size: events.append((name, kind, size))
        )
        conn.tools.update({"a": {}, "b": {}})
        conn.resources["file:///x"] = {}

        conn.notify_tools_changed()
        conn.notify_resources_changed()

        assert events == [
            ("test", InventoryKind.TOOLS, 2),
            ("test", InventoryKind.RESOURCES, 1),
        ]

    @pytest.mark.asyncio
    async def test_get_status_snapshot(self, make_connection, streams):
        conn = make_connection()
        await connect_ready(conn, streams)
        conn.tools["echo"] = {}

        snapshot = conn.get_status()

        assert snapshot.name == "test"
        assert snapshot.status == ConnectionStatus.READY
        assert snapshot.session_id == "abc123"
        assert snapshot.tools == 1
        assert snapshot.reconnect_attempts == 0
        assert snapshot.next_retry_delay is None
        assert snapshot.last_connected is not None

    @pytest.mark.asyncio
    async def test_env_is_not_logged(self, make_connection, streams):
        output = io.StringIO()
        logger = LinkLogger(LogConfig(level=LogLevel.DEBUG, format=LogFormat.JSON, output=output))
        conn = make_connection(logger=logger, env={"API_TOKEN": "hunter2"})

        await connect_ready(conn, streams)

        entries = [json.loads(line) for line in output.getvalue().splitlines()]
        events = [entry.get("event") for entry in entries]
        assert "connecting" in events
        assert "ready" in events
        assert "hunter2" not in output.getvalue()
        assert "API_TOKEN" not in output.getvalue()

    def test_request_ids_are_monotonic(self, make_connection):
        conn = make_connection()

        ids = [conn.request("tools/list")["id"] for _ in range(5)]

        assert ids == sorted(ids)
        assert len(set(ids)) == 5
