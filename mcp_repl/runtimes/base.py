"""
Base types for code execution runtimes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..execution.results import ExecutionResult


class RuntimeKind(str, Enum):
    """Runtime an execution request targets."""

    PRIMARY = "primary"
    ALTERNATE = "alternate"


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """One code execution request."""

    code: str
    timeout_ms: int
    runtime: RuntimeKind = RuntimeKind.PRIMARY

    def __post_init__(self) -> None:
        if not self.code:
            raise ValueError("code must be a non-empty string")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


class CodeRuntime(Protocol):
    """Runtime contract for execution backends."""

    name: str

    async def execute(self, request: ExecutionRequest) -> ExecutionResult:
        """Execute request and return the normalized result."""
