"""mcp-link configuration - config loading and models."""

from .loader import (
    ConfigLoader,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from .models import (
    ConnectionConfig,
    LinkConfig,
    LoggingConfig,
    ReconnectConfig,
)

__all__ = [
    # Config models
    "LinkConfig",
    "ConnectionConfig",
    "ReconnectConfig",
    "LoggingConfig",
    # Loader
    "ConfigLoader",
    "get_config_loader",
    "load_config",
    "resolve_env_vars",
]
