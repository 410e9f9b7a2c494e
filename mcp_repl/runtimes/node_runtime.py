"""
Node.js runtime for code execution.

ES module snippets are piped to ``node --input-type=module``. Snippets that
look like CommonJS are written to a temp ``.cjs`` file and run from there,
since piping with ``--input-type=commonjs`` is unreliable across Node versions.
"""

from __future__ import annotations

import time
from pathlib import Path

from ..core.config import ExecutionConfig
from ..core.logging import get_logger
from ..execution.artifacts import temp_source_file
from ..execution.classifier import SourceKind, classify_source
from ..execution.results import ExecutionResult, RawOutcome, build_result
from .base import ExecutionRequest
from .process import run_process

logger = get_logger(__name__)


class NodeRuntime:
    """Executes snippets with the local ``node`` binary."""

    name = "node"

    def __init__(
        self,
        working_dir: Path,
        node_binary: str = "node",
        module_args: list[str] | None = None,
        temp_dirname: str = "temp",
        ignore_markers_in_comments: bool = False,
    ):
        self.working_dir = working_dir
        self.node_binary = node_binary
        self.module_args = list(module_args) if module_args is not None else ["--input-type=module"]
        self.temp_dir = working_dir / temp_dirname
        self.ignore_markers_in_comments = ignore_markers_in_comments

    @classmethod
    def from_config(cls, working_dir: Path, config: ExecutionConfig) -> NodeRuntime:
        return cls(
            working_dir=working_dir,
            node_binary=config.node_binary,
            module_args=config.node_module_args,
            temp_dirname=config.temp_dirname,
            ignore_markers_in_comments=config.classifier_ignores_comments,
        )

    def classify(self, code: str) -> SourceKind:
        return classify_source(code, ignore_comments_and_strings=self.ignore_markers_in_comments)

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        kind = self.classify(request.code)
        logger.debug(f"Executing {len(request.code)} chars as {kind.value}")
        if kind is SourceKind.COMMONJS:
            outcome = await self._run_from_file(request)
        else:
            outcome = await self._run_from_stdin(request)
        return build_result(outcome, metadata={"runtime": self.name, "strategy": kind.value})

    async def _run_from_stdin(self, request: ExecutionRequest) -> RawOutcome:
        return await run_process(
            [self.node_binary, *self.module_args],
            cwd=self.working_dir,
            timeout_seconds=request.timeout_seconds,
            stdin_text=request.code,
        )

    async def _run_from_file(self, request: ExecutionRequest) -> RawOutcome:
        started_at = time.monotonic()
        try:
            async with temp_source_file(self.temp_dir, request.code) as code_file:
                outcome = await run_process(
                    [self.node_binary, str(code_file)],
                    cwd=self.working_dir,
                    timeout_seconds=request.timeout_seconds,
                )
        except OSError as exc:
            logger.warning(f"Could not prepare temp file in {self.temp_dir}: {exc}")
            return RawOutcome.spawn_failure(started_at, str(exc))

        # Time the whole request, including the file write.
        outcome.started_at = started_at
        return outcome
