"""JSON-RPC protocol helpers for MCP communication."""

import itertools
import json
from typing import Any

PROTOCOL_VERSION = "2024-11-05"
CLIENT_INFO = {"name": "MCPClient", "version": "1.0.0"}
CLIENT_CAPABILITIES: dict[str, Any] = {
    "roots": {"listChanged": True},
    "sampling": {},
}

# Error code for failures that never reached the server
LOCAL_ERROR_CODE = -1


class RequestIdGenerator:
    """Monotonic request ids, unique for the lifetime of one connection."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def next(self) -> int:
        return next(self._counter)


class JSONRPCMessage:
    """JSON-RPC 2.0 message builder and parser."""

    @staticmethod
    def request(method: str, params: dict[str, Any] | None = None, id: int = 1) -> dict[str, Any]:
        """Build a JSON-RPC request.

        Args:
            method: Method name (e.g., "initialize", "tools/list", "tools/call")
            params: Optional parameters
            id: Request ID

        Returns:
            JSON-RPC request dict
        """
        msg: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "id": id,
        }
        if params is not None:
            msg["params"] = params
        return msg

    @staticmethod
    def notification(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Build a JSON-RPC notification (no response expected).

        Args:
            method: Method name
            params: Optional parameters

        Returns:
            JSON-RPC notification dict
        """
        msg: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
        }
        if params is not None:
            msg["params"] = params
        return msg

    @staticmethod
    def initialize(id: int) -> dict[str, Any]:
        """Build the handshake ``initialize`` request."""
        return JSONRPCMessage.request(
            "initialize",
            params={
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": CLIENT_CAPABILITIES,
                "clientInfo": CLIENT_INFO,
            },
            id=id,
        )

    @staticmethod
    def initialized() -> dict[str, Any]:
        """Build the handshake ``notifications/initialized`` notification."""
        return JSONRPCMessage.notification("notifications/initialized")

    @staticmethod
    def error_result(code: int, message: str) -> dict[str, Any]:
        """Build the error-shaped result returned to callers instead of raising.

        Args:
            code: HTTP status, or LOCAL_ERROR_CODE for local failures
            message: Error text

        Returns:
            ``{"error": {"code": ..., "message": ...}}``
        """
        return {"error": {"code": code, "message": message}}

    @staticmethod
    def parse(message: str | bytes) -> dict[str, Any]:
        """Parse a JSON-RPC message.

        Args:
            message: JSON string or bytes

        Returns:
            Parsed message dict

        Raises:
            ValueError: If message is not a JSON object
        """
        if isinstance(message, bytes):
            message = message.decode("utf-8")
        parsed = json.loads(message)
        if not isinstance(parsed, dict):
            raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed

    @staticmethod
    def is_response(message: dict[str, Any]) -> bool:
        """Check if message is a response (has 'result' or 'error')."""
        return "result" in message or "error" in message

    @staticmethod
    def is_error(message: dict[str, Any]) -> bool:
        """Check if message is an error response."""
        return "error" in message

    @staticmethod
    def dumps(message: dict[str, Any]) -> str:
        """Serialize a message for a text frame."""
        return json.dumps(message)
