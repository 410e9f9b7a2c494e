"""
Logging setup for mcp-repl.

Standard output carries the JSON-RPC channel, so every handler installed here
writes to standard error.
"""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "mcp_repl"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``mcp_repl`` namespace."""
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(level: str | int = "WARNING", *, rich_output: bool = True) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Log level name or number
        rich_output: Use a Rich handler; otherwise plain text lines

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    else:
        resolved = level

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if rich_output:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))

    root.addHandler(handler)
    root.setLevel(resolved)
    root.propagate = False
    return root
