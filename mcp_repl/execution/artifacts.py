"""
Scoped temp source files for file-backed executions.
"""

import asyncio
import secrets
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from ..core.logging import get_logger

logger = get_logger(__name__)


def new_artifact_path(temp_dir: Path, prefix: str = "node-exec", suffix: str = ".cjs") -> Path:
    """Return a collision-resistant path of the form ``<prefix>-<ms>-<random><suffix>``."""
    stamp = int(time.time() * 1000)
    return temp_dir / f"{prefix}-{stamp}-{secrets.token_hex(6)}{suffix}"


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug(f"Could not remove temp artifact {path}: {exc}")


@asynccontextmanager
async def temp_source_file(
    temp_dir: Path,
    source: str,
    *,
    prefix: str = "node-exec",
    suffix: str = ".cjs",
) -> AsyncIterator[Path]:
    """
    Materialize ``source`` as a uniquely named file for the lifetime of the block.

    The scratch directory is created when missing. The file is removed on every
    exit path; removal errors are logged and never raised.

    Raises:
        OSError: when the directory or the file cannot be written
    """
    await asyncio.to_thread(temp_dir.mkdir, parents=True, exist_ok=True)
    path = new_artifact_path(temp_dir, prefix=prefix, suffix=suffix)
    try:
        await asyncio.to_thread(path.write_text, source, encoding="utf-8")
        logger.debug(f"Wrote temp artifact {path}")
        yield path
    finally:
        await asyncio.to_thread(_remove_quietly, path)
