"""
Code execution runtime backends.
"""

from .base import CodeRuntime, ExecutionRequest, RuntimeKind
from .deno_runtime import DenoRuntime
from .node_runtime import NodeRuntime
from .process import run_process
from .registry import RuntimeHealth, check_binary, create_runtime, detect_runtime_health

__all__ = [
    "CodeRuntime",
    "DenoRuntime",
    "ExecutionRequest",
    "NodeRuntime",
    "RuntimeHealth",
    "RuntimeKind",
    "check_binary",
    "create_runtime",
    "detect_runtime_health",
    "run_process",
]
