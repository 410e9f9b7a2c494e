"""
mcp-repl MCP server implementation.

Speaks newline-delimited JSON-RPC 2.0 over stdio and hands tool calls to the
request router. Tool calls run as independent tasks, so several executions can
be in flight at once; responses are written whole, one line each.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

from ..core.config import GatewayConfig
from ..core.logging import get_logger
from ..runtimes import detect_runtime_health
from .router import RequestRouter
from .tools import GatewayTools

logger = get_logger(__name__)

PROTOCOL_VERSION = "2024-11-05"

# JSON-RPC error codes
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603

# Code snippets arrive on a single line and can be large.
MAX_MESSAGE_BYTES = 16 * 1024 * 1024


class McpReplServer:
    """
    MCP server for code execution and code search.

    Handles MCP protocol messages and dispatches tool calls to the router.
    """

    def __init__(self, config: GatewayConfig | None = None, router: RequestRouter | None = None):
        self.config = config or GatewayConfig()
        self.router = router or RequestRouter.from_config(self.config)
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        self._index_task: asyncio.Task | None = None

    async def handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle MCP initialize request."""
        return {
            "protocolVersion": params.get("protocolVersion", PROTOCOL_VERSION),
            "capabilities": {
                "tools": {},
            },
            "serverInfo": {
                "name": self.config.server.name,
                "version": self.config.server.version,
            },
        }

    async def handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle tools/list request."""
        return {
            "tools": GatewayTools.to_mcp_tools(
                default_timeout_ms=self.config.execution.default_timeout_ms,
                default_top_k=self.config.search.default_top_k,
            ),
        }

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle tools/call request."""
        tool_name = params.get("name", "")
        arguments = params.get("arguments", {})

        response = await self.router.dispatch(tool_name, arguments)
        return response.to_mcp_response()

    async def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Handle an incoming MCP message."""
        method = message.get("method", "")
        params = message.get("params") or {}
        msg_id = message.get("id")

        handlers = {
            "initialize": self.handle_initialize,
            "ping": self.handle_ping,
            "tools/list": self.handle_tools_list,
            "tools/call": self.handle_tools_call,
        }

        handler = handlers.get(method)
        if handler is None:
            if msg_id is not None:
                return {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "error": {
                        "code": METHOD_NOT_FOUND,
                        "message": f"Method not found: {method}",
                    },
                }
            return None

        try:
            result = await handler(params)
            if msg_id is not None:
                return {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "result": result,
                }
            return None
        except Exception as e:
            logger.exception(f"Error handling {method}: {e}")
            if msg_id is not None:
                return {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "error": {
                        "code": INTERNAL_ERROR,
                        "message": str(e),
                    },
                }
            return None

    async def start(self) -> None:
        """Probe runtimes and start the initial index sync in the background."""
        asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
        await asyncio.to_thread(detect_runtime_health, self.config)
        if self.config.search.index_on_startup:
            self._index_task = asyncio.create_task(self._initial_index())

    async def _initial_index(self) -> None:
        try:
            await self.router.search_index.sync_index([self.config.working_dir])
        except Exception as e:
            logger.warning(f"Initial code index failed: {e}")

    async def _respond(self, writer: asyncio.StreamWriter, message: dict[str, Any]) -> None:
        response = await self.handle_message(message)
        if response is None:
            return
        async with self._write_lock:
            writer.write((json.dumps(response) + "\n").encode("utf-8"))
            await writer.drain()

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def run_stdio(self) -> None:
        """Run the server using stdio transport."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_MESSAGE_BYTES)
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)

        writer_transport, writer_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout
        )
        writer = asyncio.StreamWriter(writer_transport, writer_protocol, reader, loop)
        await self.serve(reader, writer)

    async def serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Answer newline-delimited messages from ``reader`` until end of input."""
        while True:
            line = await _read_frame(reader)
            if line is None:
                logger.warning("Skipping message larger than the read limit")
                continue
            if not line:
                break
            if not line.strip():
                continue

            try:
                message = json.loads(line.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping malformed message: {e}")
                continue
            if not isinstance(message, dict):
                logger.warning("Skipping non-object message")
                continue

            self._spawn(self._respond(writer, message))

        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        logger.info("Input closed, shutting down")

    async def run(self) -> None:
        """Run the MCP server."""
        await self.start()
        try:
            await self.run_stdio()
        finally:
            if self._index_task is not None and not self._index_task.done():
                self._index_task.cancel()


async def _read_frame(reader: asyncio.StreamReader) -> bytes | None:
    """
    Read one newline-terminated frame.

    Returns ``b""`` at end of input. A frame longer than the reader limit is
    discarded through its newline and reported as ``None``.
    """
    try:
        return await reader.readuntil(b"\n")
    except asyncio.IncompleteReadError as e:
        return e.partial
    except asyncio.LimitOverrunError as e:
        consumed = e.consumed

    while True:
        await reader.readexactly(consumed)
        try:
            await reader.readuntil(b"\n")
            return None
        except asyncio.IncompleteReadError:
            return None
        except asyncio.LimitOverrunError as e:
            consumed = e.consumed


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    exception = context.get("exception")
    message = context.get("message", "unhandled error in event loop")
    if exception is not None:
        logger.error(f"{message}: {exception!r}", exc_info=exception)
    else:
        logger.error(message)


def create_server(config: GatewayConfig | None = None) -> McpReplServer:
    """Create an mcp-repl server instance."""
    return McpReplServer(config)
