"""
mcp-repl: a Model Context Protocol server that runs JavaScript and TypeScript
snippets with Node.js or Deno and searches the surrounding codebase.
"""

__version__ = "1.0.111"

__all__ = ["__version__"]
