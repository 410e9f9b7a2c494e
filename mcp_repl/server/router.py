"""
Request routing for tool calls.

Maps a tool name and its arguments onto a runtime or the code search index
and renders the outcome as text segments. ``RequestRouter.dispatch`` is the
single place where tool failures are logged and turned into error text; it
never raises.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.config import GatewayConfig
from ..core.exceptions import InvalidArgumentError, MissingArgumentError, ToolError, UnknownToolError
from ..core.logging import get_logger
from ..execution.results import ExecutionResult, elapsed_ms
from ..runtimes import CodeRuntime, ExecutionRequest, RuntimeKind, create_runtime
from ..search import LexicalCodeIndex, SearchHit, SearchIndex
from .tools import GatewayTools

logger = get_logger(__name__)

ERROR_PREFIX = "ERROR: "


@dataclass
class ToolResponse:
    """Rendered response for one tool call."""

    segments: list[str] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def error(cls, message: str) -> ToolResponse:
        return cls(segments=[f"{ERROR_PREFIX}{message}"], is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(self.segments)

    def to_mcp_response(self) -> dict[str, Any]:
        """Convert to MCP response format."""
        return {"content": [{"type": "text", "text": segment} for segment in self.segments]}


def _split_csv(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw]
    else:
        items = str(raw).split(",")
    return [item.strip() for item in items if item.strip()]


def _positive_int(name: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise InvalidArgumentError(name, raw, "expected a number")
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidArgumentError(name, raw, "expected a number") from exc
    if value <= 0:
        raise InvalidArgumentError(name, raw, "must be positive")
    return value


def render_execution(result: ExecutionResult, label: str = "Execution") -> list[str]:
    """Render an execution result as stdout, errors, then a summary line."""
    segments: list[str] = []
    if result.stdout:
        segments.append(result.stdout.strip())
    if result.stderr:
        segments.append(f"{ERROR_PREFIX}{result.stderr.strip()}")
    if result.error_message:
        segments.append(f"{ERROR_PREFIX}{result.error_message}")
    segments.append(
        f"{label} completed in {result.execution_time_ms}ms "
        f"with exit code {result.exit_code or 0}"
    )
    return segments


def _log_execution(label: str, result: ExecutionResult) -> None:
    runtime = result.metadata.get("runtime", "unknown")
    strategy = result.metadata.get("strategy", "unknown")
    logger.info(
        f"{label} on {runtime} ({strategy}) finished in {result.execution_time_ms}ms "
        f"with exit code {result.exit_code}"
    )


def render_hit(hit: SearchHit) -> str:
    """Render one search hit as a title line followed by detail lines."""
    title = (
        f"[{hit.score}] {hit.file}:{hit.start_line}-{hit.end_line} - "
        f"{hit.kind} {hit.qualified_name}"
    )
    details: list[str] = []
    structure = hit.structure

    if structure.parameters:
        params = ", ".join(
            f"{p.name}: {p.type}" if p.type else p.name for p in structure.parameters
        )
        details.append(f"Parameters: {params}")
    if structure.return_type:
        details.append(f"Return type: {structure.return_type}")
    if structure.parent_class:
        details.append(f"Parent class: {structure.parent_class}")
    if structure.inherits_from:
        details.append(f"Extends: {structure.inherits_from}")
    if hit.doc:
        details.append(f"Doc: {hit.doc}")
    if structure.calls:
        details.append(f"Calls: {', '.join(structure.calls)}")
    details.append(f"Lines: {hit.lines}")
    if hit.code:
        details.append(f"Code snippet: {hit.code}")

    return title + "\n" + "\n".join(details)


class RequestRouter:
    """Dispatches tool calls to runtimes and the search index."""

    def __init__(
        self,
        config: GatewayConfig,
        primary: CodeRuntime,
        alternate: CodeRuntime,
        search_index: SearchIndex,
    ):
        self.config = config
        self.primary = primary
        self.alternate = alternate
        self.search_index = search_index
        self._handlers = {
            GatewayTools.EXECUTE_NODE: self._handle_execute_node,
            GatewayTools.EXECUTE_DENO: self._handle_execute_deno,
            GatewayTools.SEARCH_CODE: self._handle_search_code,
        }

    @classmethod
    def from_config(
        cls, config: GatewayConfig, search_index: SearchIndex | None = None
    ) -> RequestRouter:
        if search_index is None:
            search_index = LexicalCodeIndex(
                config.working_dir,
                default_extensions=config.search.default_extensions,
                default_ignores=config.search.default_ignores,
                max_file_bytes=config.search.max_file_bytes,
                snippet_lines=config.search.snippet_lines,
            )
        return cls(
            config,
            primary=create_runtime(RuntimeKind.PRIMARY, config),
            alternate=create_runtime(RuntimeKind.ALTERNATE, config),
            search_index=search_index,
        )

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> ToolResponse:
        """Run a tool call; every failure comes back as an error segment."""
        try:
            canonical = GatewayTools.canonical_name(name)
            if canonical is None:
                raise UnknownToolError(name)
            if arguments is None:
                arguments = {}
            if not isinstance(arguments, dict):
                raise InvalidArgumentError("arguments", arguments, "expected an object")
            return await self._handlers[canonical](arguments)
        except ToolError as e:
            logger.info(f"Rejected tool call {name!r}: {e}")
            return ToolResponse.error(str(e))
        except Exception as e:
            logger.exception(f"Tool call {name!r} failed: {e}")
            return ToolResponse.error(str(e))

    def _build_request(self, args: dict[str, Any], runtime: RuntimeKind, tool_label: str) -> ExecutionRequest:
        code = args.get("code")
        if not code:
            raise MissingArgumentError("code", tool_label)
        if not isinstance(code, str):
            raise InvalidArgumentError("code", code, "expected a string")

        raw_timeout = args.get("timeout")
        timeout_ms = (
            self.config.execution.default_timeout_ms
            if raw_timeout is None
            else _positive_int("timeout", raw_timeout)
        )
        return ExecutionRequest(code=code, timeout_ms=timeout_ms, runtime=runtime)

    async def _handle_execute_node(self, args: dict[str, Any]) -> ToolResponse:
        """Handle executenodejs tool call."""
        request = self._build_request(args, RuntimeKind.PRIMARY, "execute")
        result = await self.primary.execute(request)
        _log_execution("Execution", result)
        return ToolResponse(segments=render_execution(result, "Execution"))

    async def _handle_execute_deno(self, args: dict[str, Any]) -> ToolResponse:
        """Handle executedeno tool call."""
        request = self._build_request(args, RuntimeKind.ALTERNATE, "Deno execute")
        result = await self.alternate.execute(request)
        _log_execution("Deno execution", result)
        return ToolResponse(segments=render_execution(result, "Deno execution"))

    def _resolve_folder(self, folder: str) -> Path:
        path = Path(folder).expanduser()
        if not path.is_absolute():
            path = self.config.working_dir / path
        return path.resolve()

    async def _handle_search_code(self, args: dict[str, Any]) -> ToolResponse:
        """Handle searchcode tool call."""
        query = args.get("query")
        if not query:
            raise MissingArgumentError("query", "code search")

        search_cfg = self.config.search
        folders = [self._resolve_folder(f) for f in _split_csv(args.get("folders"))]
        folders = folders or [self.config.working_dir]
        extensions = [e.lstrip(".") for e in _split_csv(args.get("extensions"))]
        extensions = [e for e in extensions if e] or list(search_cfg.default_extensions)
        ignores = _split_csv(args.get("ignores")) or list(search_cfg.default_ignores)
        raw_top_k = args.get("topK")
        top_k = search_cfg.default_top_k if not raw_top_k else _positive_int("topK", raw_top_k)

        started_at = time.monotonic()
        await self.search_index.sync_index(folders, extensions, ignores)
        hits = await self.search_index.query_index(str(query), top_k)
        execution_time_ms = elapsed_ms(started_at)

        segments = [
            f'Code search for "{query}"\n'
            f"Searched in: {', '.join(str(f) for f in folders)}\n"
            f"Included extensions: {', '.join(extensions)}\n"
            f"Ignored patterns: {', '.join(ignores)}"
        ]
        if not hits:
            segments.append("No results found.")
        else:
            segments.append(f"Found {len(hits)} result(s):")
            segments.extend(render_hit(hit) for hit in hits)
        segments.append(f"Search completed in {execution_time_ms}ms")
        return ToolResponse(segments=segments)
