"""
Core functionality for mcp-repl.
"""

from .config import ConfigManager, ExecutionConfig, GatewayConfig, SearchConfig, ServerConfig
from .exceptions import (
    ConfigurationError,
    ExecutionError,
    InvalidArgumentError,
    McpReplError,
    MissingArgumentError,
    ProcessSpawnError,
    SearchError,
    ToolError,
    UnknownToolError,
)
from .logging import get_logger, setup_logging

__all__ = [
    "ConfigManager",
    "ConfigurationError",
    "ExecutionConfig",
    "ExecutionError",
    "GatewayConfig",
    "InvalidArgumentError",
    "McpReplError",
    "MissingArgumentError",
    "ProcessSpawnError",
    "SearchConfig",
    "SearchError",
    "ServerConfig",
    "ToolError",
    "UnknownToolError",
    "get_logger",
    "setup_logging",
]
