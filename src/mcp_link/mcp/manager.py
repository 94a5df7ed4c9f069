"""MCP Client Manager - manages all configured MCP connections."""

import asyncio
from typing import Any

import httpx

from mcp_link.config.models import ConnectionConfig, LinkConfig
from mcp_link.errors import ErrorFactory, create_error
from mcp_link.logging.logger import LinkLogger
from mcp_link.types import ConnectionStatus, InventoryKind, LogLevel

from .connection import MCPConnection
from .transports import SocketTransportFactory, StreamTransportFactory
from .types import (
    ConnectionSnapshot,
    InventoryChangeCallback,
    MessageHandler,
    StatusChangeCallback,
)


class MCPClientManager:
    """Manages all MCP connections.

    Creates one connection per configured entry and provides a unified
    interface for connecting, sending requests and shutting down.
    """

    def __init__(
        self,
        config: LinkConfig,
        logger: LinkLogger | None = None,
        error_factory: ErrorFactory | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport_factory: StreamTransportFactory | None = None,
        socket_factory: SocketTransportFactory | None = None,
        on_status_change: StatusChangeCallback | None = None,
        on_inventory_changed: InventoryChangeCallback | None = None,
    ):
        """Initialize MCP client manager.

        Args:
            config: Link configuration
            logger: Optional logger
            error_factory: Optional error factory
            http_client: Shared HTTP client (each connection owns its own if omitted)
            transport_factory: Push-stream transport factory passed to every connection
            socket_factory: Socket transport factory passed to every connection
            on_status_change: Optional callback on any connection's lifecycle change
            on_inventory_changed: Optional callback on any connection's inventory change
        """
        self._config = config
        self._logger = logger
        self._error_factory = error_factory
        self._http_client = http_client
        self._transport_factory = transport_factory
        self._socket_factory = socket_factory
        self._on_status_change = on_status_change
        self._on_inventory_changed = on_inventory_changed
        self._connections: dict[str, MCPConnection] = {}

        for name, connection_config in config.connections.items():
            self._connections[name] = self._create_connection(name, connection_config)

    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        """Log message if logger available."""
        if self._logger:
            self._logger._log(level, "registry", message, kwargs or None)

    def _create_connection(self, name: str, connection_config: ConnectionConfig) -> MCPConnection:
        if connection_config.name != name:
            connection_config.name = name
        return MCPConnection(
            connection_config,
            logger=self._logger,
            error_factory=self._error_factory,
            http_client=self._http_client,
            transport_factory=self._transport_factory,
            socket_factory=self._socket_factory,
            on_status_change=self._on_status_change,
            on_inventory_changed=self._handle_inventory_changed,
        )

    async def connect_all(
        self, handler: MessageHandler | None = None
    ) -> dict[str, ConnectionSnapshot]:
        """Connect to all configured endpoints.

        Connects in parallel. Failures are logged but don't stop others.

        Args:
            handler: Message handler shared by every connection

        Returns:
            Dict of connection name to status
        """
        if not self._connections:
            self._log(LogLevel.INFO, "No MCP connections configured")
            return {}

        self._log(LogLevel.INFO, f"Connecting to {len(self._connections)} MCP endpoints")

        names = list(self._connections)
        await asyncio.gather(
            *(self._connect_one(name, self._connections[name], handler) for name in names)
        )

        status_dict = self.get_status()
        ready = sum(1 for s in status_dict.values() if s.status == ConnectionStatus.READY)
        self._log(LogLevel.INFO, f"Connected to {ready}/{len(status_dict)} endpoints")
        return status_dict

    async def _connect_one(
        self, name: str, conn: MCPConnection, handler: MessageHandler | None
    ) -> None:
        """Connect one endpoint, catching exceptions."""
        try:
            await conn.connect(handler)
        except Exception as e:
            self._log(LogLevel.ERROR, f"Failed to connect to '{name}': {e}")

    def _handle_inventory_changed(self, name: str, kind: InventoryKind, size: int) -> None:
        if self._on_inventory_changed:
            try:
                self._on_inventory_changed(name, kind, size)
            except Exception as e:
                self._log(LogLevel.WARN, f"Error in inventory changed callback: {e}")

    def get(self, name: str) -> MCPConnection:
        """Get connection by name.

        Raises:
            LinkError(CONNECTION_NOT_FOUND): If no connection has that name
        """
        conn = self._connections.get(name)
        if conn is None:
            raise create_error(
                "CONNECTION_NOT_FOUND",
                connection=name,
                detail=f"No connection named '{name}'",
            )
        return conn

    def list_connections(self) -> list[MCPConnection]:
        return list(self._connections.values())

    async def send_request(self, name: str, request: dict[str, Any]) -> dict[str, Any]:
        """Send a request over the named connection.

        Raises:
            LinkError(CONNECTION_NOT_FOUND): If no connection has that name
        """
        return await self.get(name).send_request(request)

    def get_status(self) -> dict[str, ConnectionSnapshot]:
        """Get status of all connections.

        Returns:
            Dict of connection name to ConnectionSnapshot
        """
        return {name: conn.get_status() for name, conn in self._connections.items()}

    async def disconnect_all(self, timeout: float = 10.0) -> None:
        """Disconnect every connection, keeping them registered.

        Args:
            timeout: Maximum time to wait for all disconnects in seconds
        """
        self._log(LogLevel.INFO, "Disconnecting from all MCP endpoints")
        try:
            await asyncio.wait_for(
                asyncio.gather(
                    *(conn.disconnect() for conn in self._connections.values()),
                    return_exceptions=True,
                ),
                timeout=timeout,
            )
        except TimeoutError:
            self._log(
                LogLevel.WARN, f"Timeout ({timeout}s) waiting for all endpoints to disconnect"
            )

    async def aclose(self) -> None:
        """Disconnect and release every connection."""
        names = list(self._connections)
        results = await asyncio.gather(
            *(self._connections[name].aclose() for name in names), return_exceptions=True
        )
        for name, result in zip(names, results, strict=True):
            if isinstance(result, Exception):
                self._log(LogLevel.ERROR, f"Failed to close '{name}': {result}")
        self._connections.clear()
        self._log(LogLevel.INFO, "Closed all MCP connections")

    async def __aenter__(self) -> "MCPClientManager":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()
