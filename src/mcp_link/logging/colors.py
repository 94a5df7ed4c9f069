"""ANSI color codes for terminal output.

All colors use the 256-color palette.

Usage:
    from mcp_link.logging.colors import GREEN, RESET

    print(f"{GREEN}ready{RESET}")
"""

RESET = "\033[0m"

# Lifecycle / status
GREEN = "\033[38;5;82m"  # Ready
RED = "\033[38;5;196m"  # Failure
YELLOW = "\033[38;5;226m"  # Warnings, retries
ORANGE = "\033[38;5;208m"  # Retry budget running out

# Information
LIGHT_BLUE = "\033[38;5;153m"  # Debug / context
CYAN = "\033[38;5;51m"  # Info
MAGENTA = "\033[38;5;201m"  # Connection component tag

__all__ = [
    "RESET",
    "GREEN",
    "RED",
    "YELLOW",
    "ORANGE",
    "LIGHT_BLUE",
    "CYAN",
    "MAGENTA",
]
