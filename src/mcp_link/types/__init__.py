"""Shared types for mcp-link.

Import from here rather than submodules:
    from mcp_link.types import ConnectionStatus, LogLevel, TransportVariant
"""

from .enums import (
    ConnectionStatus,
    InventoryKind,
    LogFormat,
    LogLevel,
    TransportVariant,
)
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "TransportVariant",
    "ConnectionStatus",
    "InventoryKind",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
