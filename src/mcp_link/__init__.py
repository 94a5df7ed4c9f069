"""mcp-link - client-side connection manager for MCP endpoints.

Keeps one logical connection per configured endpoint: push-stream
establishment, JSON-RPC handshake, session reuse and backoff reconnection.
"""

from mcp_link.config import ConnectionConfig, LinkConfig, load_config
from mcp_link.errors import LinkError
from mcp_link.mcp import MCPClientManager, MCPConnection

__version__ = "0.1.0"
__all__ = [
    "__version__",
    "MCPConnection",
    "MCPClientManager",
    "ConnectionConfig",
    "LinkConfig",
    "LinkError",
    "load_config",
]
