"""mcp-link MCP connections - push-stream and socket connection management."""

from .backoff import BackoffPolicy, RetryState
from .connection import MCPConnection
from .manager import MCPClientManager
from .protocol import JSONRPCMessage, RequestIdGenerator
from .state import Effect, LifecycleEvent, Transition, transition
from .transports import SSETransport, StreamClosedError, WebSocketTransport
from .types import ConnectionSnapshot, InventoryChangeCallback, MessageHandler

__all__ = [
    # Connection
    "MCPConnection",
    # Manager
    "MCPClientManager",
    # Types
    "ConnectionSnapshot",
    "MessageHandler",
    "InventoryChangeCallback",
    # Lifecycle
    "BackoffPolicy",
    "RetryState",
    "LifecycleEvent",
    "Effect",
    "Transition",
    "transition",
    # Transports
    "SSETransport",
    "WebSocketTransport",
    "StreamClosedError",
    # Protocol
    "JSONRPCMessage",
    "RequestIdGenerator",
]
