"""mcp-link configuration data models."""

from dataclasses import dataclass, field
from typing import Any

from mcp_link.types import LogFormat, LogLevel, TransportVariant


@dataclass
class ReconnectConfig:
    """Reconnect budget and backoff for a push-stream connection."""

    max_attempts: int = 5
    initial_delay: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0


@dataclass
class ConnectionConfig:
    """Definition of one remote MCP endpoint to connect to."""

    name: str = "default"
    url: str = ""
    transport: TransportVariant = TransportVariant.SSE
    command: str | None = None  # Forwarded to endpoints that spawn the server process
    args: list[str] | str | None = None
    env: dict[str, Any] | str | None = None  # Mapping, or a JSON object string
    auth_header: str | None = None  # Sent verbatim as Authorization
    transport_type: str = "stdio"  # Sub-mode forwarded with command data
    connect_timeout: float = 10.0
    request_timeout: float = 30.0
    reconnect: ReconnectConfig = field(default_factory=ReconnectConfig)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_context: bool = True
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)


@dataclass
class LinkConfig:
    """Root configuration."""

    connections: dict[str, ConnectionConfig] = field(default_factory=dict)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
