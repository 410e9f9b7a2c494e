"""
MCP server for mcp-repl.

Tools provided:
- executenodejs: Execute JavaScript with Node.js
- executedeno: Execute JavaScript/TypeScript with Deno
- searchcode: Search the working directory's code

Usage:
    # Start MCP server
    python -m mcp_repl [working-directory]
"""

from .router import RequestRouter, ToolResponse, render_execution, render_hit
from .server import McpReplServer, create_server
from .tools import GatewayTools, ToolDefinition, ToolParameter

__all__ = [
    "GatewayTools",
    "McpReplServer",
    "RequestRouter",
    "ToolDefinition",
    "ToolParameter",
    "ToolResponse",
    "create_server",
    "render_execution",
    "render_hit",
]
