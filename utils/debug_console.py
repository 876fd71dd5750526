"""Debug console and logging setup for the replay tool.

When debug mode is enabled, every rich table or message printed to the terminal
is mirrored as plain text into the debug log, next to the parser's own log lines.
"""

import logging
import os
from typing import Optional
from rich.console import Console as RichConsole

DEBUG_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class DebugCapturingConsole(RichConsole):
    """Rich Console that also writes a plain text copy of its output to a logger."""

    def __init__(self, debug_logger: logging.Logger, *args, **kwargs):
        # record=True keeps rendered segments around for export_text()
        super().__init__(*args, record=True, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        # Always drain the record buffer so it does not grow unbounded
        plain_text = self.export_text(clear=True, styles=False).rstrip()
        if plain_text and self.debug_logger.isEnabledFor(logging.DEBUG):
            self.debug_logger.debug(f"{self._log_prefix}{plain_text}")


def create_debug_console(debug_enabled: bool = False,
                         debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """
    Create appropriate console instance based on debug mode.

    Args:
        debug_enabled: Whether debug mode is enabled
        debug_logger: Logger instance for debug output

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()


def setup_debug_logging(log_file: str = "stream_debug.log") -> logging.Logger:
    """
    Route all log records to a debug file and stderr.

    Args:
        log_file: Path to debug log file (opened in append mode)

    Returns:
        Logger to hand to DebugCapturingConsole
    """
    log_file = os.path.abspath(log_file)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(DEBUG_LOG_FORMAT)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Console captures go to the file only; the terminal already shows them
    console_logger = logging.getLogger("debug_console")
    for handler in console_logger.handlers[:]:
        console_logger.removeHandler(handler)
    console_logger.addHandler(file_handler)
    console_logger.propagate = False

    logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_file}")
    return console_logger


def setup_logging(level: str) -> None:
    """Basic stderr logging at the configured level (e.g. "info")"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=DEBUG_LOG_FORMAT,
    )
