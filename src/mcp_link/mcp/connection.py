"""MCP Connection - manages one logical connection to one MCP endpoint.

Push-stream (SSE) connections open an event stream, wait for the server to
announce its message endpoint, run the initialize / initialized handshake
over HTTP POST and then forward every pushed message to the caller's
handler. Lost streams are re-established with exponential backoff, resuming
the server-side session through the ``session_id`` query parameter.

Socket connections are the reduced variant: open, forward, match responses
by id. No handshake, no timeout, no reconnection.
"""

import asyncio
import inspect
from datetime import datetime
from typing import Any

import httpx

from mcp_link.config.models import ConnectionConfig
from mcp_link.errors import ErrorFactory, LinkError, create_error
from mcp_link.logging.logger import ConnectionLogger, LinkLogger
from mcp_link.types import ConnectionStatus, InventoryKind, TransportVariant

from .backoff import BackoffPolicy, RetryState
from .protocol import LOCAL_ERROR_CODE, JSONRPCMessage, RequestIdGenerator
from .state import Effect, LifecycleEvent, Transition, transition
from .transports import (
    SocketTransportFactory,
    SSETransport,
    StreamListener,
    StreamTransport,
    StreamTransportFactory,
    WebSocketTransport,
)
from .types import (
    ConnectionSnapshot,
    InventoryChangeCallback,
    MessageHandler,
    StatusChangeCallback,
)
from .url import (
    EnvParseError,
    build_stream_url,
    extract_session_id,
    parse_env,
    redact_url,
    resolve_endpoint,
)

RECONNECT_FAILED_MESSAGE = "Connection not initialized and reconnect failed"


class _StreamCallbacks:
    """Listener bound to one establishment attempt."""

    def __init__(self, connection: "MCPConnection", generation: int):
        self._connection = connection
        self._generation = generation

    async def on_open(self) -> None:
        await self._connection._on_stream_open(self._generation)

    async def on_endpoint(self, data: str) -> None:
        await self._connection._on_endpoint(self._generation, data)

    async def on_message(self, data: str) -> None:
        await self._connection._on_stream_message(self._generation, data)

    async def on_error(self, error: Exception) -> None:
        await self._connection._on_stream_error(self._generation, error)


class _SocketCallbacks:
    def __init__(self, connection: "MCPConnection", socket: WebSocketTransport):
        self._connection = connection
        self._socket = socket

    async def on_message(self, data: str) -> None:
        await self._connection._on_socket_message(self._socket, data)

    async def on_error(self, error: Exception) -> None:
        await self._connection._on_socket_error(self._socket, error)


class MCPConnection:
    """Single MCP endpoint connection.

    All state is mutated from the event loop only. Every push-stream
    establishment gets a generation number; callbacks from a superseded
    attempt are ignored.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        handler: MessageHandler | None = None,
        *,
        logger: LinkLogger | None = None,
        error_factory: ErrorFactory | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport_factory: StreamTransportFactory | None = None,
        socket_factory: SocketTransportFactory | None = None,
        on_status_change: StatusChangeCallback | None = None,
        on_inventory_changed: InventoryChangeCallback | None = None,
    ):
        """Initialize MCP connection.

        Args:
            config: Connection configuration
            handler: Message handler; may instead be given to the first connect()
            logger: Optional logger
            error_factory: Optional error factory
            http_client: HTTP client for the stream and POSTs (created if omitted)
            transport_factory: Builds push-stream transports (SSETransport if omitted)
            socket_factory: Builds socket transports (WebSocketTransport if omitted)
            on_status_change: Optional callback on every lifecycle change
            on_inventory_changed: Optional callback after resource/tool mutations
        """
        self.config = config
        self.name = config.name
        self._handler = handler
        self._log: ConnectionLogger | None = logger.connection(self.name) if logger else None
        self._error_factory = error_factory or ErrorFactory()
        self._on_status_change = on_status_change
        self._on_inventory_changed = on_inventory_changed

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.request_timeout)
        self._transport_factory = transport_factory or self._default_transport
        self._socket_factory = socket_factory or WebSocketTransport

        self._policy = BackoffPolicy.from_config(config.reconnect)
        self._retry = RetryState.initial(self._policy)
        self._ids = RequestIdGenerator()

        self._status = ConnectionStatus.DISCONNECTED
        self._generation = 0
        self._session_id: str | None = None
        self._message_endpoint: str | None = None
        self._reconnecting = False
        self._initialize_id: int | None = None

        self.capabilities: dict[str, Any] | None = None
        self.server_info: dict[str, Any] | None = None
        self.resources: dict[str, Any] = {}
        self.tools: dict[str, Any] = {}
        self.subscriptions: set[str] = set()

        self._transport: StreamTransport | None = None
        self._socket: WebSocketTransport | None = None
        self._socket_waiters: dict[Any, asyncio.Future[dict[str, Any]]] = {}
        self._pending: asyncio.Future[MCPConnection] | None = None
        self._pending_error: LinkError | None = None
        self._timeout_task: asyncio.Task[None] | None = None
        self._handshake_task: asyncio.Task[None] | None = None
        self._retry_task: asyncio.Task[None] | None = None

        self._last_connected: datetime | None = None
        self._last_error: str | None = None

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def status(self) -> ConnectionStatus:
        """Current lifecycle state."""
        return self._status

    @property
    def is_ready(self) -> bool:
        return self._status == ConnectionStatus.READY

    @property
    def session_id(self) -> str | None:
        """Negotiated session id; kept across reconnects and disconnect()."""
        return self._session_id

    @property
    def message_endpoint(self) -> str | None:
        return self._message_endpoint

    @property
    def retry_state(self) -> RetryState:
        return self._retry

    @property
    def policy(self) -> BackoffPolicy:
        return self._policy

    @property
    def handler(self) -> MessageHandler | None:
        return self._handler

    def get_status(self) -> ConnectionSnapshot:
        """Get detailed status.

        Returns:
            ConnectionSnapshot with current state
        """
        reconnecting = self._retry_task is not None and not self._retry_task.done()
        return ConnectionSnapshot(
            name=self.name,
            transport=self.config.transport,
            status=self._status,
            session_id=self._session_id,
            message_endpoint=self._message_endpoint,
            reconnect_attempts=self._retry.attempts,
            next_retry_delay=self._retry.delay if reconnecting else None,
            resources=len(self.resources),
            tools=len(self.tools),
            subscriptions=sorted(self.subscriptions),
            server_info=self.server_info,
            last_connected=self._last_connected.isoformat() if self._last_connected else None,
            last_error=self._last_error,
        )

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def connect(self, handler: MessageHandler | None = None) -> "MCPConnection":
        """Establish the connection and complete the handshake.

        Args:
            handler: Message handler, stored for every later reconnect. Must
                match the handler already bound to this connection, if any.

        Returns:
            This connection, once ready

        Raises:
            LinkError(HANDLER_CONFLICT): A different handler is already bound
            LinkError(TRANSPORT_UNSUPPORTED): Unknown transport variant
            LinkError: Establishment, handshake or timeout failure
        """
        self._bind_handler(handler)
        return await self._establish()

    async def send_request(self, request: dict[str, Any]) -> dict[str, Any]:
        """Send a JSON-RPC request and return the JSON-RPC-shaped result.

        Never raises for transport or server failures: those come back as
        ``{"error": {"code": ..., "message": ...}}``.

        Args:
            request: JSON-RPC request (or notification) envelope

        Returns:
            Parsed response body, a synthesized success, or an error-shaped dict
        """
        if not self.is_ready:
            if self._handler is None:
                message = "Connection not initialized"
                self._log_request_failed(LOCAL_ERROR_CODE, message)
                return JSONRPCMessage.error_result(LOCAL_ERROR_CODE, message)
            self._info("Connection not ready, attempting to reconnect before sending request")
            try:
                await self._establish()
            except Exception as e:
                self._error(f"Failed to reconnect: {e}")
                self._log_request_failed(LOCAL_ERROR_CODE, RECONNECT_FAILED_MESSAGE)
                return JSONRPCMessage.error_result(LOCAL_ERROR_CODE, RECONNECT_FAILED_MESSAGE)

        if self.config.transport == TransportVariant.WEBSOCKET:
            return await self._send_socket_request(request)
        return await self._post_request(request)

    def request(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Build a request envelope with the next id for this connection."""
        return JSONRPCMessage.request(method, params, id=self._ids.next())

    async def disconnect(self) -> None:
        """Tear down the transport and clear per-connection state.

        Idempotent. Keeps the session id and reconnect counters.
        """
        error = None
        if self._pending is not None and not self._pending.done():
            error = create_error(
                "CONNECTION_FAILED",
                connection=self.name,
                detail="Disconnected before the handshake completed",
            )
        await self._dispatch(LifecycleEvent.DISCONNECT, error=error)
        await self._close_socket()

    async def aclose(self) -> None:
        """Full teardown: disconnect, forget the session, release the HTTP client."""
        await self.disconnect()
        self._session_id = None
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "MCPConnection":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def notify_resources_changed(self) -> None:
        """Report the resource inventory size after a mutation."""
        self._notify_inventory(InventoryKind.RESOURCES, len(self.resources))

    def notify_tools_changed(self) -> None:
        """Report the tool inventory size after a mutation."""
        self._notify_inventory(InventoryKind.TOOLS, len(self.tools))

    # ------------------------------------------------------------------ #
    # Establishment
    # ------------------------------------------------------------------ #

    def _bind_handler(self, handler: MessageHandler | None) -> None:
        if handler is None:
            return
        if self._handler is None:
            self._handler = handler
        elif self._handler is not handler:
            raise create_error("HANDLER_CONFLICT", connection=self.name)

    async def _establish(self) -> "MCPConnection":
        if self.config.transport == TransportVariant.SSE:
            return await self._connect_sse()
        if self.config.transport == TransportVariant.WEBSOCKET:
            return await self._connect_socket()
        raise create_error(
            "TRANSPORT_UNSUPPORTED", connection=self.name, transport=self.config.transport
        )

    async def _connect_sse(self) -> "MCPConnection":
        # An explicit establishment is a first attempt, not a scheduled retry
        self._reconnecting = False
        await self._dispatch(LifecycleEvent.CONNECT)
        if self._pending is None:
            raise create_error(
                "INTERNAL_ERROR",
                connection=self.name,
                error_type="MissingPendingAttempt",
                detail="No pending establishment after connect",
            )
        # Shared by every caller waiting on this attempt
        return await asyncio.shield(self._pending)

    def _default_transport(self, url: str, listener: StreamListener) -> StreamTransport:
        return SSETransport(
            url,
            listener,
            client=self._http,
            headers=self._auth_headers(),
            connect_timeout=self.config.connect_timeout,
        )

    def _auth_headers(self) -> dict[str, str]:
        if self.config.auth_header:
            return {"Authorization": self.config.auth_header}
        return {}

    def _post_headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", **self._auth_headers()}

    def _stream_url(self) -> str:
        try:
            env = parse_env(self.config.env)
        except EnvParseError as e:
            self._error(f"{e}; ignoring env data")
            env = {}
        return build_stream_url(self.config, session_id=self._session_id, env=env)

    # ------------------------------------------------------------------ #
    # State machine
    # ------------------------------------------------------------------ #

    async def _dispatch(
        self,
        event: LifecycleEvent,
        generation: int | None = None,
        error: LinkError | None = None,
    ) -> None:
        if generation is not None and generation != self._generation:
            self._debug(f"Ignoring {event.value} from superseded attempt {generation}")
            return

        result = transition(
            self._status, event, self._retry, self._policy, reconnecting=self._reconnecting
        )
        self._retry = result.retry
        if error is not None:
            self._pending_error = error
            self._last_error = str(error)
        self._set_status(result.state)

        for effect in result.effects:
            await self._run_effect(effect, result)

    async def _run_effect(self, effect: Effect, result: Transition) -> None:
        if effect == Effect.CLOSE_TRANSPORT:
            await self._close_transport()
        elif effect == Effect.OPEN_TRANSPORT:
            await self._open_transport()
        elif effect == Effect.START_HANDSHAKE:
            generation = self._generation
            self._handshake_task = asyncio.create_task(
                self._handshake(generation), name=f"mcp-handshake:{self.name}"
            )
        elif effect == Effect.RESOLVE_PENDING:
            self._cancel(self._timeout_task)
            self._last_connected = datetime.now()
            self._last_error = None
            self._pending_error = None
            if self._log:
                self._log.ready(reconnected=self._reconnecting)
            self._reconnecting = False
            if self._pending is not None and not self._pending.done():
                self._pending.set_result(self)
        elif effect == Effect.REJECT_PENDING:
            if self._pending is not None and not self._pending.done():
                self._pending.set_exception(
                    self._pending_error
                    or create_error("CONNECTION_FAILED", connection=self.name)
                )
        elif effect == Effect.SCHEDULE_RETRY:
            delay = result.retry_delay or 0.0
            if self._log:
                self._log.retry_scheduled(result.retry.attempts, self._policy.max_attempts, delay)
            self._reconnecting = True
            self._retry_task = asyncio.create_task(
                self._retry_after(delay), name=f"mcp-retry:{self.name}"
            )
        elif effect == Effect.TEARDOWN:
            if self._reconnecting and not self._policy.should_retry(self._retry.attempts):
                if self._log:
                    self._log.retries_exhausted(self._policy.max_attempts)
            await self._teardown()

    def _set_status(self, status: ConnectionStatus) -> None:
        if status == self._status:
            return
        old = self._status
        self._status = status
        self._debug(f"Status changed: {old.value} -> {status.value}")
        if self._on_status_change:
            try:
                self._on_status_change(self.name, status)
            except Exception as e:
                self._warn(f"Error in status change callback: {e}")

    async def _open_transport(self) -> None:
        self._cancel(self._retry_task)
        self._generation += 1
        generation = self._generation

        if self._pending is None or self._pending.done():
            self._pending = asyncio.get_running_loop().create_future()
            self._pending.add_done_callback(self._consume_pending)
        self._pending_error = None
        self._message_endpoint = None
        self._initialize_id = None

        try:
            url = self._stream_url()
        except LinkError as e:
            await self._dispatch(LifecycleEvent.HANDSHAKE_FAILED, generation, e)
            return

        if self._log:
            self._log.connecting(redact_url(url), self._retry.attempts)

        self._timeout_task = asyncio.create_task(
            self._timeout_after(generation, self.config.connect_timeout),
            name=f"mcp-timeout:{self.name}",
        )
        self._transport = self._transport_factory(url, _StreamCallbacks(self, generation))
        try:
            await self._transport.open()
        except Exception as e:
            await self._on_stream_error(generation, e)

    async def _close_transport(self) -> None:
        # Invalidate callbacks of the transport being closed
        self._generation += 1
        self._cancel(self._timeout_task)
        self._cancel(self._handshake_task)
        transport, self._transport = self._transport, None
        if transport is not None:
            await transport.close()

    async def _teardown(self) -> None:
        self._cancel(self._retry_task)
        await self._close_transport()
        self._reconnecting = False
        self._message_endpoint = None
        self.capabilities = None
        self.server_info = None
        self.resources.clear()
        self.tools.clear()
        self.subscriptions.clear()
        if self._log:
            self._log.disconnected()

    async def _retry_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self._dispatch(LifecycleEvent.CONNECT)

    async def _timeout_after(self, generation: int, timeout: float) -> None:
        await asyncio.sleep(timeout)
        if generation != self._generation or self.is_ready:
            return
        if self._log:
            self._log.timed_out(timeout)
        error = create_error("CONNECTION_TIMEOUT", connection=self.name, timeout_seconds=timeout)
        await self._dispatch(LifecycleEvent.TIMEOUT, generation, error)

    def _cancel(self, task: asyncio.Task[Any] | None) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _consume_pending(self, future: asyncio.Future[Any]) -> None:
        # Attempts nobody awaits (scheduled retries) must not warn on rejection
        if not future.cancelled():
            future.exception()

    # ------------------------------------------------------------------ #
    # Stream callbacks
    # ------------------------------------------------------------------ #

    async def _on_stream_open(self, generation: int) -> None:
        if generation != self._generation:
            return
        if self._log:
            self._log.opened()

    async def _on_endpoint(self, generation: int, data: str) -> None:
        if generation != self._generation:
            return
        try:
            endpoint = resolve_endpoint(data, self._transport.url if self._transport else "")
        except LinkError as e:
            e = e.with_context(connection=self.name)
            if self._log:
                self._log.handshake_failed(e)
            await self._dispatch(LifecycleEvent.HANDSHAKE_FAILED, generation, e)
            return

        self._message_endpoint = endpoint
        session_id = extract_session_id(endpoint)
        if session_id:
            self._session_id = session_id
        if self._log:
            self._log.endpoint(endpoint, session_id)
        await self._dispatch(LifecycleEvent.ENDPOINT_RECEIVED, generation)

    async def _on_stream_message(self, generation: int, data: str) -> None:
        if generation != self._generation:
            return
        try:
            message = JSONRPCMessage.parse(data)
        except ValueError as e:
            if self._log:
                self._log.message_dropped(e, data)
            return

        if self._initialize_id is not None and message.get("id") == self._initialize_id:
            self._record_initialize_result(message)
        await self._deliver(message)

    async def _on_stream_error(self, generation: int, error: Exception) -> None:
        if generation != self._generation:
            return
        was_ready = self.is_ready
        if self._log:
            self._log.transport_error(error, was_ready)
        link_error = self._error_factory.from_exception(error, connection=self.name)
        if not was_ready and not self._reconnecting:
            link_error = create_error(
                "CONNECTION_FAILED",
                connection=self.name,
                detail=f"Initial stream connection failed: {error}",
            )
        await self._dispatch(LifecycleEvent.TRANSPORT_ERROR, generation, link_error)

    async def _deliver(self, message: dict[str, Any]) -> None:
        if self._handler is None:
            return
        try:
            result = self._handler(message)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._error(f"Message handler raised: {e}")

    # ------------------------------------------------------------------ #
    # Handshake
    # ------------------------------------------------------------------ #

    async def _handshake(self, generation: int) -> None:
        try:
            self._initialize_id = self._ids.next()
            response = await self._post_handshake(
                JSONRPCMessage.initialize(self._initialize_id), "Initialize request"
            )
            if generation != self._generation:
                return
            self._record_initialize_result(self._json_body(response))
            await self._post_handshake(JSONRPCMessage.initialized(), "Initialized notification")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = self._error_factory.from_exception(e, connection=self.name)
            if generation == self._generation and self._log:
                self._log.handshake_failed(error)
            await self._dispatch(LifecycleEvent.HANDSHAKE_FAILED, generation, error)
            return
        await self._dispatch(LifecycleEvent.HANDSHAKE_SUCCEEDED, generation)

    async def _post_handshake(self, payload: dict[str, Any], step: str) -> httpx.Response:
        if self._message_endpoint is None:
            raise create_error("ENDPOINT_INVALID", connection=self.name, endpoint=None)
        response = await self._http.post(
            self._message_endpoint, json=payload, headers=self._post_headers()
        )
        if not response.is_success:
            raise create_error(
                "HANDSHAKE_FAILED",
                connection=self.name,
                step=step,
                status_code=response.status_code,
                body=response.text,
            )
        self._debug(f"{step} sent (status {response.status_code})")
        return response

    @staticmethod
    def _json_body(response: httpx.Response) -> dict[str, Any] | None:
        if "application/json" not in response.headers.get("content-type", ""):
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def _record_initialize_result(self, message: dict[str, Any] | None) -> None:
        if not message or not isinstance(message.get("result"), dict):
            return
        result = message["result"]
        self.capabilities = result.get("capabilities")
        self.server_info = result.get("serverInfo")

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    async def _post_request(self, request: dict[str, Any]) -> dict[str, Any]:
        if self._message_endpoint is None:
            message = "No message endpoint"
            self._log_request_failed(LOCAL_ERROR_CODE, message)
            return JSONRPCMessage.error_result(LOCAL_ERROR_CODE, message)

        try:
            response = await self._http.post(
                self._message_endpoint, json=request, headers=self._post_headers()
            )
            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                body: dict[str, Any] = response.json()
                return body
            if response.is_success:
                return {"result": {"success": True}}
            self._log_request_failed(response.status_code, response.text)
            return JSONRPCMessage.error_result(response.status_code, response.text)
        except Exception as e:
            self._log_request_failed(LOCAL_ERROR_CODE, str(e))
            return JSONRPCMessage.error_result(LOCAL_ERROR_CODE, str(e) or type(e).__name__)

    # ------------------------------------------------------------------ #
    # Socket variant
    # ------------------------------------------------------------------ #

    async def _connect_socket(self) -> "MCPConnection":
        await self._close_socket()
        self._set_status(ConnectionStatus.CONNECTING)
        socket = self._socket_factory(self.config.url, self._auth_headers())
        if self._log:
            self._log.connecting(self.config.url, 0)
        try:
            await socket.open(_SocketCallbacks(self, socket))
        except Exception as e:
            error = self._error_factory.from_exception(e, connection=self.name)
            self._last_error = str(error)
            self._set_status(ConnectionStatus.DISCONNECTED)
            raise error from e
        self._socket = socket
        self._last_connected = datetime.now()
        self._last_error = None
        self._set_status(ConnectionStatus.READY)
        if self._log:
            self._log.ready(reconnected=False)
        return self

    async def _close_socket(self) -> None:
        socket, self._socket = self._socket, None
        if socket is not None:
            await socket.close()
        self._fail_socket_waiters("Socket closed")
        if self.config.transport == TransportVariant.WEBSOCKET:
            self._set_status(ConnectionStatus.DISCONNECTED)

    async def _send_socket_request(self, request: dict[str, Any]) -> dict[str, Any]:
        if self._socket is None:
            return JSONRPCMessage.error_result(LOCAL_ERROR_CODE, "Socket is not open")

        request_id = request.get("id")
        waiter: asyncio.Future[dict[str, Any]] | None = None
        if request_id is not None:
            waiter = asyncio.get_running_loop().create_future()
            self._socket_waiters[request_id] = waiter

        try:
            await self._socket.send(JSONRPCMessage.dumps(request))
        except Exception as e:
            if request_id is not None:
                self._socket_waiters.pop(request_id, None)
            self._log_request_failed(LOCAL_ERROR_CODE, str(e))
            return JSONRPCMessage.error_result(LOCAL_ERROR_CODE, str(e) or type(e).__name__)

        if waiter is None:
            # Notifications get no response
            return {"result": {"success": True}}
        return await waiter

    async def _on_socket_message(self, socket: WebSocketTransport, data: str) -> None:
        if socket is not self._socket:
            return
        try:
            message = JSONRPCMessage.parse(data)
        except ValueError as e:
            if self._log:
                self._log.message_dropped(e, data)
            return

        request_id = message.get("id")
        waiter = None
        if isinstance(request_id, (str, int)):
            waiter = self._socket_waiters.pop(request_id, None)
        if waiter is not None and not waiter.done():
            waiter.set_result(message)
        await self._deliver(message)

    async def _on_socket_error(self, socket: WebSocketTransport, error: Exception) -> None:
        if socket is not self._socket:
            return
        if self._log:
            self._log.transport_error(error, was_ready=True)
        self._last_error = str(error)
        await self._close_socket()
        if self._log:
            self._log.disconnected()

    def _fail_socket_waiters(self, message: str) -> None:
        waiters, self._socket_waiters = self._socket_waiters, {}
        for waiter in waiters.values():
            if not waiter.done():
                waiter.set_result(JSONRPCMessage.error_result(LOCAL_ERROR_CODE, message))

    # ------------------------------------------------------------------ #
    # Inventory / logging helpers
    # ------------------------------------------------------------------ #

    def _notify_inventory(self, kind: InventoryKind, size: int) -> None:
        if self._log:
            self._log.inventory_changed(kind.value, size)
        if self._on_inventory_changed:
            try:
                self._on_inventory_changed(self.name, kind, size)
            except Exception as e:
                self._warn(f"Error in inventory change callback: {e}")

    def _log_request_failed(self, code: int, message: str) -> None:
        if self._log:
            self._log.request_failed(code, message)

    def _debug(self, message: str) -> None:
        if self._log:
            self._log.debug(message)

    def _info(self, message: str) -> None:
        if self._log:
            self._log.info(message)

    def _warn(self, message: str) -> None:
        if self._log:
            self._log.warn(message)

    def _error(self, message: str) -> None:
        if self._log:
            self._log.error(message)
