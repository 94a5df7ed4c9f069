"""MCP connection types."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from mcp_link.types import ConnectionStatus, InventoryKind, TransportVariant

# Receives every inbound protocol message, responses and notifications alike
MessageHandler = Callable[[dict[str, Any]], Awaitable[None] | None]

# (connection name, new lifecycle state)
StatusChangeCallback = Callable[[str, ConnectionStatus], None]

# (connection name, inventory kind, size after mutation)
InventoryChangeCallback = Callable[[str, InventoryKind, int], None]


@dataclass
class ConnectionSnapshot:
    """Status of one MCP connection.

    Used for monitoring and diagnostics.
    """

    name: str
    transport: TransportVariant
    status: ConnectionStatus
    session_id: str | None = None
    message_endpoint: str | None = None
    reconnect_attempts: int = 0
    next_retry_delay: float | None = None
    resources: int = 0
    tools: int = 0
    subscriptions: list[str] = field(default_factory=list)
    server_info: dict[str, Any] | None = None
    last_connected: str | None = None
    last_error: str | None = None
