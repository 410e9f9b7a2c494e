"""
Result envelope for code executions.

Executors report a ``RawOutcome``; ``build_result`` turns any outcome into the
single ``ExecutionResult`` shape returned to callers.
"""

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class RawOutcome:
    """Intermediate process outcome produced by a runtime executor."""

    started_at: float
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    error: str | None = None
    finished_at: float | None = None

    @classmethod
    def spawn_failure(cls, started_at: float, error: str) -> "RawOutcome":
        """Outcome for a process that could not be started or talked to."""
        return cls(started_at=started_at, error=error, finished_at=time.monotonic())


@dataclass(frozen=True)
class ExecutionResult:
    """Normalized result of one execution request."""

    success: bool
    stdout: str
    stderr: str
    execution_time_ms: int
    exit_code: int | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)


def elapsed_ms(started_at: float, finished_at: float | None = None) -> int:
    """Milliseconds between two monotonic timestamps, never negative."""
    end = time.monotonic() if finished_at is None else finished_at
    return max(0, int(round((end - started_at) * 1000)))


def build_result(
    outcome: RawOutcome,
    *,
    finished_at: float | None = None,
    metadata: dict[str, Any] | None = None,
) -> ExecutionResult:
    """
    Normalize a raw outcome into an ExecutionResult.

    Args:
        outcome: Outcome reported by an executor
        finished_at: Monotonic finish time; defaults to the outcome's own
            finish time, or now
        metadata: Extra details (runtime, strategy) kept off the wire

    Returns:
        ExecutionResult where ``success`` holds only for exit code 0
    """
    end = finished_at if finished_at is not None else outcome.finished_at
    exit_code = outcome.exit_code if outcome.error is None else None
    return ExecutionResult(
        success=exit_code == 0,
        stdout=outcome.stdout if outcome.error is None else "",
        stderr=outcome.stderr if outcome.error is None else "",
        execution_time_ms=elapsed_ms(outcome.started_at, end),
        exit_code=exit_code,
        error_message=outcome.error,
        metadata=dict(metadata or {}),
    )
