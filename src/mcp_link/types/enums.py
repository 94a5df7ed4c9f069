"""Shared enumerations for mcp-link."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class TransportVariant(str, Enum):
    """MCP connection transport variant."""

    SSE = "sse"  # push stream + POST submission endpoint
    WEBSOCKET = "websocket"  # single bidirectional socket


class ConnectionStatus(str, Enum):
    """Lifecycle of one MCP connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    READY = "ready"


class InventoryKind(str, Enum):
    """Kind of server inventory tracked per connection."""

    RESOURCES = "resources"
    TOOLS = "tools"
