"""mcp-link logger - component-scoped colored or JSON logging."""

import json
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from mcp_link.logging.colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from mcp_link.types import LogFormat, LogLevel


@dataclass
class LogConfig:
    """Logger configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_context: bool = True
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)
    output: TextIO = field(default=sys.stderr)

    def __post_init__(self) -> None:
        """Initialize default components if not provided."""
        if not self.components:
            self.components = {
                "connection": True,
                "registry": True,
                "config": True,
            }


class LinkLogger:
    """Main logger facade. Creates component-specific loggers."""

    def __init__(self, config: LogConfig | None = None):
        """Initialize logger with configuration.

        Args:
            config: Logger configuration (defaults to LogConfig())
        """
        self.config = config or LogConfig()
        self._level_order = {
            LogLevel.DEBUG: 0,
            LogLevel.INFO: 1,
            LogLevel.WARN: 2,
            LogLevel.ERROR: 3,
        }

    def connection(self, name: str) -> "ConnectionLogger":
        """Get a logger scoped to one MCP connection.

        Args:
            name: Connection name

        Returns:
            ConnectionLogger instance
        """
        return ConnectionLogger(self, name)

    def configure(self, config: LogConfig) -> None:
        """Update configuration (for hot-reload).

        Args:
            config: New logger configuration
        """
        self.config = config

    def _should_log(self, level: LogLevel) -> bool:
        return self._level_order.get(level, 0) >= self._level_order.get(self.config.level, 1)

    def _log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Internal logging method.

        Args:
            level: Log level
            component: Component name (connection, registry, config)
            message: Log message
            context: Additional context data
        """
        if not self._should_log(level):
            return

        if not self.config.components.get(component, True):
            return

        if self.config.format == LogFormat.JSON:
            self._log_json(level, component, message, context)
        else:
            self._log_colored(level, component, message, context)

    def _log_json(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level.value,
            "component": component,
            "message": message,
        }
        if context:
            log_entry.update(context)

        print(json.dumps(log_entry, default=str), file=self.config.output)

    def _log_colored(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        level_colors = {
            LogLevel.DEBUG: LIGHT_BLUE,
            LogLevel.INFO: CYAN,
            LogLevel.WARN: YELLOW,
            LogLevel.ERROR: RED,
        }

        color = level_colors.get(level, RESET)
        component_color = {
            "connection": MAGENTA,
            "registry": GREEN,
            "config": ORANGE,
        }.get(component, RESET)

        # Format: [COMPONENT] message
        output = f"{component_color}[{component.upper()}]{RESET} {color}{message}{RESET}"

        if context and self.config.show_context:
            context_str = str(context)
            if len(context_str) > self.config.truncate_at:
                context_str = context_str[: self.config.truncate_at] + "..."
            output += f" {LIGHT_BLUE}{context_str}{RESET}"

        print(output, file=self.config.output)


class ConnectionLogger:
    """Logger for connection lifecycle events."""

    def __init__(self, parent: LinkLogger, name: str):
        """Initialize connection logger.

        Args:
            parent: Parent LinkLogger instance
            name: Connection name
        """
        self.parent = parent
        self.name = name

    def _emit(self, level: LogLevel, event: str, message: str, **extra: Any) -> None:
        context: dict[str, Any] = {"connection": self.name, "event": event}
        context.update({k: v for k, v in extra.items() if v is not None})
        self.parent._log(level, "connection", f"[{self.name}] {message}", context)

    def debug(self, message: str, **extra: Any) -> None:
        self._emit(LogLevel.DEBUG, "debug", message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        self._emit(LogLevel.INFO, "info", message, **extra)

    def warn(self, message: str, **extra: Any) -> None:
        self._emit(LogLevel.WARN, "warning", message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        self._emit(LogLevel.ERROR, "error", message, **extra)

    def connecting(self, url: str, attempt: int) -> None:
        """Log transport establishment.

        Args:
            url: Effective stream URL (credentials are never part of it)
            attempt: Reconnect attempt number, 0 for a fresh connect
        """
        message = f"Connecting to {url}"
        if attempt:
            message += f" (reconnect attempt {attempt})"
        self._emit(LogLevel.INFO, "connecting", message, url=url, attempt=attempt)

    def opened(self) -> None:
        self._emit(LogLevel.DEBUG, "opened", "Stream opened")

    def endpoint(self, endpoint: str, session_id: str | None) -> None:
        """Log the announced message endpoint."""
        message = f"Got message endpoint {endpoint}"
        if session_id:
            message += f" (session {session_id})"
        self._emit(LogLevel.INFO, "endpoint", message, endpoint=endpoint, session_id=session_id)

    def ready(self, reconnected: bool) -> None:
        message = "Reinitialized after reconnect ✓" if reconnected else "Connection ready ✓"
        self._emit(LogLevel.INFO, "ready", message, reconnected=reconnected)

    def handshake_failed(self, error: Exception) -> None:
        self._emit(
            LogLevel.ERROR,
            "handshake_failed",
            f"Handshake failed: {error}",
            error=str(error),
            error_type=type(error).__name__,
        )

    def message_dropped(self, error: Exception, payload: str) -> None:
        """Log an inbound payload that could not be parsed."""
        preview = payload
        if len(preview) > self.parent.config.truncate_at:
            preview = preview[: self.parent.config.truncate_at] + "..."
        self._emit(
            LogLevel.WARN,
            "message_dropped",
            f"Dropped malformed message: {error}",
            payload=preview,
        )

    def transport_error(self, error: Exception | str, was_ready: bool) -> None:
        self._emit(
            LogLevel.ERROR,
            "transport_error",
            f"Transport error: {error}",
            was_ready=was_ready,
        )

    def retry_scheduled(self, attempt: int, max_attempts: int, delay_seconds: float) -> None:
        """Log a scheduled reconnect.

        Args:
            attempt: Reconnect attempt number
            max_attempts: Retry budget
            delay_seconds: Delay before the attempt
        """
        self._emit(
            LogLevel.WARN,
            "retry_scheduled",
            f"Reconnecting in {delay_seconds:.1f}s (attempt {attempt}/{max_attempts})",
            attempt=attempt,
            max_attempts=max_attempts,
            delay_seconds=delay_seconds,
        )

    def retries_exhausted(self, max_attempts: int) -> None:
        self._emit(
            LogLevel.ERROR,
            "retries_exhausted",
            f"Max reconnect attempts reached ({max_attempts})",
            max_attempts=max_attempts,
        )

    def timed_out(self, timeout_seconds: float) -> None:
        self._emit(
            LogLevel.ERROR,
            "timeout",
            f"Connection timeout after {timeout_seconds:.1f}s",
            timeout_seconds=timeout_seconds,
        )

    def request_failed(self, code: int, message: str) -> None:
        self._emit(
            LogLevel.ERROR,
            "request_failed",
            f"Request failed ({code}): {message}",
            code=code,
        )

    def inventory_changed(self, kind: str, size: int) -> None:
        self._emit(
            LogLevel.INFO,
            "inventory_changed",
            f"{kind.capitalize()} changed, now have {size} {kind}",
            kind=kind,
            size=size,
        )

    def disconnected(self) -> None:
        self._emit(LogLevel.INFO, "disconnected", "Disconnected")
