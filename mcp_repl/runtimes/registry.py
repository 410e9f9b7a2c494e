"""
Runtime registry and health checks for code execution.
"""

import shutil
import subprocess
from dataclasses import dataclass

from ..core.config import GatewayConfig
from ..core.exceptions import ConfigurationError
from ..core.logging import get_logger
from .base import CodeRuntime, RuntimeKind
from .deno_runtime import DenoRuntime
from .node_runtime import NodeRuntime

logger = get_logger(__name__)


@dataclass(slots=True)
class RuntimeHealth:
    """Availability information for a runtime backend."""

    runtime: str
    available: bool
    detail: str


def create_runtime(kind: RuntimeKind | str, config: GatewayConfig) -> CodeRuntime:
    """Create the runtime backend serving ``kind``."""
    try:
        normalized = RuntimeKind(kind)
    except ValueError as exc:
        supported = ", ".join(k.value for k in RuntimeKind)
        raise ConfigurationError(f"Unsupported runtime '{kind}'. Supported: {supported}") from exc

    if normalized is RuntimeKind.PRIMARY:
        return NodeRuntime.from_config(config.working_dir, config.execution)
    return DenoRuntime.from_config(config.working_dir, config.execution)


def check_binary(binary: str, timeout_seconds: float = 5.0) -> tuple[bool, str]:
    """Return (healthy, detail) for an executable answering ``--version``."""
    if shutil.which(binary) is None:
        return False, f"{binary} not found on PATH"
    try:
        result = subprocess.run(
            [binary, "--version"],
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return False, f"{binary} --version timed out"
    except OSError as exc:
        return False, f"{binary} could not be started: {exc}"

    if result.returncode != 0:
        detail = (result.stderr or result.stdout).strip() or f"{binary} --version failed"
        return False, detail

    version_line = result.stdout.strip().splitlines()[0] if result.stdout.strip() else "unknown"
    return True, version_line


def detect_runtime_health(config: GatewayConfig) -> dict[str, RuntimeHealth]:
    """Probe runtime availability for diagnostics."""
    results = []

    node_ok, node_detail = check_binary(config.execution.node_binary)
    results.append(RuntimeHealth(runtime="node", available=node_ok, detail=node_detail))

    deno_ok, deno_detail = check_binary(config.execution.deno_binary)
    results.append(RuntimeHealth(runtime="deno", available=deno_ok, detail=deno_detail))

    for health in results:
        if not health.available:
            logger.warning(f"{health.runtime} runtime unavailable: {health.detail}")

    return {health.runtime: health for health in results}
