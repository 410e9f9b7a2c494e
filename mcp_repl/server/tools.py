"""
MCP tool definitions for the mcp-repl server.

Defines the tools exposed by the server and the names they answer to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_DEBUGGING_GUIDANCE = (
    "\n\nDEBUGGING GUIDANCE:\n"
    "- Use this tool for all debugging and investigation tasks instead of external CLI tools\n"
    "- Break problems into testable hypotheses and verify them with code execution\n"
    "- Test APIs, data structures, and logic incrementally\n"
    "- Use console.log for debugging output and JSON.stringify for complex objects\n"
    "- Always prefer this over CLI tools like curl, wget, or external commands"
)

_APPROACH = (
    "\n\nAPPROACH:\n"
    "1. Form a hypothesis about what might be wrong\n"
    "2. Write focused test code to verify the hypothesis\n"
    "3. Execute and analyze results\n"
    "4. Refine hypothesis based on findings\n"
    "5. Iterate until problem is solved"
)


@dataclass
class ToolParameter:
    """Parameter definition for an MCP tool."""

    name: str
    description: str
    type: str = "string"
    required: bool = False


@dataclass
class ToolDefinition:
    """Definition of an MCP tool."""

    name: str
    description: str
    parameters: list[ToolParameter]
    aliases: list[str] = field(default_factory=list)

    def to_mcp_schema(self) -> dict[str, Any]:
        """Convert to MCP tool schema format."""
        properties = {}
        required = []

        for param in self.parameters:
            prop = {
                "type": param.type,
                "description": param.description,
            }
            properties[param.name] = prop

            if param.required:
                required.append(param.name)

        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }


def _timeout_parameter(default_timeout_ms: int) -> ToolParameter:
    return ToolParameter(
        name="timeout",
        description=f"Optional timeout in milliseconds (default: {default_timeout_ms})",
        type="number",
        required=False,
    )


class GatewayTools:
    """
    Collection of tools exposed via MCP.

    Tool names match the historical names clients already call, and each tool
    also answers to its prefixed alias.
    """

    EXECUTE_NODE = "executenodejs"
    EXECUTE_DENO = "executedeno"
    SEARCH_CODE = "searchcode"

    @staticmethod
    def execute_node(default_timeout_ms: int = 120000) -> ToolDefinition:
        """Tool for running JavaScript with Node.js."""
        return ToolDefinition(
            name=GatewayTools.EXECUTE_NODE,
            description=(
                "Execute JavaScript code directly with Node.js - supports ESM imports "
                "and all Node.js features." + _DEBUGGING_GUIDANCE + _APPROACH
            ),
            parameters=[
                ToolParameter(
                    name="code",
                    description="JavaScript code to execute - use for debugging, testing hypotheses, and investigation",
                    type="string",
                    required=True,
                ),
                _timeout_parameter(default_timeout_ms),
            ],
            aliases=["execute", "mcp_mcp_repl_execute"],
        )

    @staticmethod
    def execute_deno(default_timeout_ms: int = 120000) -> ToolDefinition:
        """Tool for running JavaScript or TypeScript with Deno."""
        return ToolDefinition(
            name=GatewayTools.EXECUTE_DENO,
            description=(
                "Execute JavaScript/TypeScript code with Deno - supports ESM imports "
                "and all Deno features." + _DEBUGGING_GUIDANCE
                + "\n- Great for TypeScript debugging and type checking" + _APPROACH
                + "\n\nWEB REQUESTS: Use fetch() instead of curl for HTTP requests"
            ),
            parameters=[
                ToolParameter(
                    name="code",
                    description="JavaScript/TypeScript code to execute - use for debugging, testing hypotheses, and investigation",
                    type="string",
                    required=True,
                ),
                _timeout_parameter(default_timeout_ms),
            ],
            aliases=["mcp_mcp_repl_executedeno"],
        )

    @staticmethod
    def search_code(default_top_k: int = 8) -> ToolDefinition:
        """Tool for searching the codebase."""
        return ToolDefinition(
            name=GatewayTools.SEARCH_CODE,
            description="Semantic code search with metadata extraction and AST-aware chunking",
            parameters=[
                ToolParameter(
                    name="query",
                    description="Semantic search query for code",
                    type="string",
                    required=True,
                ),
                ToolParameter(
                    name="folders",
                    description="Optional comma-separated list of folders to search (defaults to working directory)",
                ),
                ToolParameter(
                    name="extensions",
                    description="Optional comma-separated list of file extensions to include (default: js,ts)",
                ),
                ToolParameter(
                    name="ignores",
                    description="Optional comma-separated list of patterns to ignore (default: node_modules)",
                ),
                ToolParameter(
                    name="topK",
                    description=f"Optional number of results to return (default: {default_top_k})",
                    type="number",
                ),
            ],
            aliases=["mcp_mcp_repl_searchcode"],
        )

    @classmethod
    def all_tools(cls, default_timeout_ms: int = 120000, default_top_k: int = 8) -> list[ToolDefinition]:
        """Get all tool definitions."""
        return [
            cls.execute_node(default_timeout_ms),
            cls.execute_deno(default_timeout_ms),
            cls.search_code(default_top_k),
        ]

    @classmethod
    def to_mcp_tools(cls, default_timeout_ms: int = 120000, default_top_k: int = 8) -> list[dict[str, Any]]:
        """Convert all tools to MCP schema format."""
        return [tool.to_mcp_schema() for tool in cls.all_tools(default_timeout_ms, default_top_k)]

    @classmethod
    def canonical_name(cls, name: str) -> str | None:
        """Resolve a tool name or alias to its canonical name."""
        for tool in cls.all_tools():
            if name == tool.name or name in tool.aliases:
                return tool.name
        return None
