"""
Deno runtime for code execution.
"""

from __future__ import annotations

from pathlib import Path

from ..core.config import ExecutionConfig
from ..execution.results import ExecutionResult, build_result
from .base import ExecutionRequest
from .process import run_process


class DenoRuntime:
    """Pipes snippets to ``deno run --allow-all -``."""

    name = "deno"

    def __init__(
        self,
        working_dir: Path,
        deno_binary: str = "deno",
        args: list[str] | None = None,
    ):
        self.working_dir = working_dir
        self.deno_binary = deno_binary
        self.args = list(args) if args is not None else ["run", "--allow-all", "-"]

    @classmethod
    def from_config(cls, working_dir: Path, config: ExecutionConfig) -> DenoRuntime:
        return cls(working_dir=working_dir, deno_binary=config.deno_binary, args=config.deno_args)

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        outcome = await run_process(
            [self.deno_binary, *self.args],
            cwd=self.working_dir,
            timeout_seconds=request.timeout_seconds,
            stdin_text=request.code,
        )
        return build_result(outcome, metadata={"runtime": self.name, "strategy": "stdin"})
