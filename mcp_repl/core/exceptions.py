"""
Custom exceptions for mcp-repl.

Tool errors carry the exact text returned to the client.
"""


class McpReplError(Exception):
    """Base exception for mcp-repl errors."""


class ConfigurationError(McpReplError):
    """Error in configuration."""


# Tool Call Errors


class ToolError(McpReplError):
    """Base exception for errors raised while dispatching a tool call."""


class MissingArgumentError(ToolError):
    """A required tool argument was not supplied."""

    def __init__(self, argument: str, tool_name: str):
        super().__init__(f"Missing {argument} argument for {tool_name} tool")
        self.argument = argument
        self.tool_name = tool_name


class InvalidArgumentError(ToolError):
    """A tool argument was supplied with an unusable value."""

    def __init__(self, argument: str, value: object, reason: str):
        super().__init__(f"Invalid {argument} argument {value!r}: {reason}")
        self.argument = argument
        self.value = value


class UnknownToolError(ToolError):
    """The requested tool is not served here."""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


# Execution Errors


class ExecutionError(McpReplError):
    """Base exception for execution errors."""


class ProcessSpawnError(ExecutionError):
    """Child process could not be created or communicated with."""

    def __init__(self, executable: str, reason: str):
        super().__init__(f"Failed to start {executable}: {reason}")
        self.executable = executable
        self.reason = reason


# Search Errors


class SearchError(McpReplError):
    """Error raised by the code search index."""
