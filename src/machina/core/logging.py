"""
Logging setup for the machina CLI.

Library modules only create loggers (``logging.getLogger(__name__)``); the
CLI calls ``setup_logging`` once to attach a console handler to the
``machina`` logger. Log output goes to stderr so generated text printed on
stdout (``machina graph``, ``machina show``) stays clean.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime

# =============================================================================
# Terminal Colors (respects NO_COLOR)
# =============================================================================

_NO_COLOR = bool(os.environ.get("NO_COLOR")) or not sys.stderr.isatty()


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "" if _NO_COLOR else "\033[0m"
    DIM = "" if _NO_COLOR else "\033[2m"

    # Log levels
    DEBUG = "" if _NO_COLOR else "\033[36m"  # Cyan
    INFO = "" if _NO_COLOR else "\033[32m"  # Green
    WARNING = "" if _NO_COLOR else "\033[33m"  # Yellow
    ERROR = "" if _NO_COLOR else "\033[31m"  # Red
    CRITICAL = "" if _NO_COLOR else "\033[35m"  # Magenta

    COMPONENT = "" if _NO_COLOR else "\033[35m"  # Magenta


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DEBUG,
        logging.INFO: Colors.INFO,
        logging.WARNING: Colors.WARNING,
        logging.ERROR: Colors.ERROR,
        logging.CRITICAL: Colors.CRITICAL,
    }

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color and not _NO_COLOR

    def format(self, record: logging.LogRecord) -> str:
        # machina.core.compiler -> compiler
        component = record.name.rsplit(".", 1)[-1]
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        if self.use_color:
            prefix = (
                f"{Colors.DIM}{timestamp}{Colors.RESET} "
                f"{Colors.COMPONENT}[{component}]{Colors.RESET}"
            )
        else:
            prefix = f"[{timestamp}] [{component}]"

        # Add level for non-INFO messages
        if record.levelno != logging.INFO:
            level_name = record.levelname
            if self.use_color:
                level_color = self.LEVEL_COLORS.get(record.levelno, "")
                level_name = f"{level_color}{level_name}{Colors.RESET}"
            prefix = f"{prefix} {level_name}:"

        message = f"{prefix} {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: int | str = logging.WARNING, use_color: bool = True) -> logging.Logger:
    """
    Attach a console handler to the ``machina`` logger.

    Calling it again replaces the previous handler.

    Args:
        level: Minimum log level (number or name such as ``"DEBUG"``)
        use_color: Colorize output when the terminal supports it

    Returns:
        The configured ``machina`` logger
    """
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")

    root_logger = logging.getLogger("machina")
    root_logger.setLevel(level)

    # Remove existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ConsoleFormatter(use_color=use_color))
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    return root_logger
