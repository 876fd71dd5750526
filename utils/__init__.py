"""Shared utilities package for the OpenAI streamer"""

from .debug_console import (
    DebugCapturingConsole,
    create_debug_console,
    setup_debug_logging,
    setup_logging,
)

__all__ = [
    "DebugCapturingConsole",
    "create_debug_console",
    "setup_debug_logging",
    "setup_logging",
]
