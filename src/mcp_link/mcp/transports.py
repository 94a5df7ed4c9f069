"""Transports for MCP connections.

- ``SSETransport``: server-sent-events stream read with httpx + httpx-sse.
  The server announces the POST endpoint with an ``endpoint`` event and
  pushes JSON-RPC messages as ``message`` events.
- ``WebSocketTransport``: one bidirectional socket (websockets).

Transports only move bytes and report what happened to a listener; the
connection decides what any of it means.
"""

import asyncio
import contextlib
from collections.abc import Callable
from typing import Protocol

import httpx
from httpx_sse import aconnect_sse
from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed

ENDPOINT_EVENT = "endpoint"
MESSAGE_EVENT = "message"


class StreamListener(Protocol):
    """Receives transport events. Called from the transport's reader task."""

    async def on_open(self) -> None: ...

    async def on_endpoint(self, data: str) -> None: ...

    async def on_message(self, data: str) -> None: ...

    async def on_error(self, error: Exception) -> None: ...


class StreamTransport(Protocol):
    """What a connection needs from a push-stream transport."""

    url: str

    async def open(self) -> None: ...

    async def close(self) -> None: ...

    @property
    def is_open(self) -> bool: ...


# (url, listener) -> transport, not yet opened
StreamTransportFactory = Callable[[str, StreamListener], StreamTransport]


class StreamClosedError(ConnectionError):
    """The server ended the event stream."""


class SSETransport:
    """Push-stream transport over server-sent events."""

    def __init__(
        self,
        url: str,
        listener: StreamListener,
        client: httpx.AsyncClient,
        headers: dict[str, str] | None = None,
        connect_timeout: float = 10.0,
    ):
        """Initialize SSE transport.

        Args:
            url: Effective stream URL
            listener: Receives open/endpoint/message/error events
            client: Shared HTTP client (not owned)
            headers: Extra request headers (e.g., Authorization)
            connect_timeout: Timeout for establishing the stream; reads never time out
        """
        self.url = url
        self._listener = listener
        self._client = client
        self._headers = headers or {}
        self._timeout = httpx.Timeout(connect_timeout, read=None)
        self._task: asyncio.Task[None] | None = None
        self._closed = False
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    async def open(self) -> None:
        """Start reading the stream in a background task."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name=f"sse-reader:{self.url}")

    async def close(self) -> None:
        """Stop reading and release the HTTP stream. Safe to call repeatedly."""
        self._closed = True
        task = self._task
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            # Called from a listener callback; the reader loop exits on its own
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        try:
            async with aconnect_sse(
                self._client,
                "GET",
                self.url,
                headers={"Cache-Control": "no-store", **self._headers},
                timeout=self._timeout,
            ) as event_source:
                event_source.response.raise_for_status()
                self._opened = True
                await self._listener.on_open()

                async for sse in event_source.aiter_sse():
                    if self._closed:
                        return
                    if sse.event == ENDPOINT_EVENT:
                        await self._listener.on_endpoint(sse.data)
                    elif sse.event == MESSAGE_EVENT:
                        await self._listener.on_message(sse.data)
                    if self._closed:
                        return

            if not self._closed:
                await self._listener.on_error(StreamClosedError("Event stream closed by server"))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._closed:
                await self._listener.on_error(e)
        finally:
            self._opened = False


class SocketListener(Protocol):
    """Receives inbound socket frames and closure."""

    async def on_message(self, data: str) -> None: ...

    async def on_error(self, error: Exception) -> None: ...


class WebSocketTransport:
    """Bidirectional socket transport."""

    def __init__(self, url: str, headers: dict[str, str] | None = None):
        """Initialize WebSocket transport.

        Args:
            url: ws:// or wss:// URL
            headers: Extra handshake headers (e.g., Authorization)
        """
        self.url = url
        self._headers = headers or {}
        self._ws: ClientConnection | None = None
        self._reader: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._closed

    async def open(self, listener: SocketListener) -> None:
        """Open the socket and start the reader.

        Raises:
            OSError, websockets.exceptions.WebSocketException: If the socket cannot be opened
        """
        self._ws = await ws_connect(self.url, additional_headers=self._headers or None)
        self._reader = asyncio.create_task(self._read(listener), name=f"ws-reader:{self.url}")

    async def send(self, data: str) -> None:
        if self._ws is None or self._closed:
            raise ConnectionError("Socket is not open")
        await self._ws.send(data)

    async def close(self) -> None:
        self._closed = True
        if self._ws is not None:
            with contextlib.suppress(Exception):
                await self._ws.close()
        reader = self._reader
        if reader is not None and not reader.done() and reader is not asyncio.current_task():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        self._ws = None

    async def _read(self, listener: SocketListener) -> None:
        assert self._ws is not None
        try:
            async for raw in self._ws:
                text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
                await listener.on_message(text)
                if self._closed:
                    return
            if not self._closed:
                await listener.on_error(ConnectionError("Socket closed by server"))
        except asyncio.CancelledError:
            raise
        except ConnectionClosed as e:
            if not self._closed:
                await listener.on_error(e)
        except Exception as e:
            if not self._closed:
                await listener.on_error(e)


# (url, headers) -> transport, not yet opened
SocketTransportFactory = Callable[[str, dict[str, str]], WebSocketTransport]
