"""
Child process lifecycle shared by every runtime.

One call owns one child: spawn, feed stdin, drain stdout/stderr, enforce the
timeout and reap. Per invocation the states are
``created -> spawned -> streaming -> closed | spawn_error``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from ..core.exceptions import ProcessSpawnError
from ..core.logging import get_logger
from ..execution.results import RawOutcome

logger = get_logger(__name__)

# Seconds to wait after SIGTERM before SIGKILL, and for pipes to drain after exit.
TERMINATE_GRACE_SECONDS = 2.0
DRAIN_GRACE_SECONDS = 1.0

_READ_CHUNK = 64 * 1024


async def _drain(stream: asyncio.StreamReader | None, sink: bytearray) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        sink.extend(chunk)


async def _feed_stdin(proc: asyncio.subprocess.Process, text: str) -> None:
    if proc.stdin is None:
        return
    try:
        proc.stdin.write(text.encode("utf-8"))
        await proc.stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        # Child exited before reading all of its input; its exit status says why.
        logger.debug(f"stdin closed early by pid {proc.pid}")
    finally:
        try:
            proc.stdin.close()
        except (BrokenPipeError, ConnectionResetError):
            pass


async def _stop(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(proc.wait(), timeout=TERMINATE_GRACE_SECONDS)
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()


async def _settle(tasks: list[asyncio.Task]) -> None:
    _, pending = await asyncio.wait(tasks, timeout=DRAIN_GRACE_SECONDS)
    for task in pending:
        task.cancel()
    if pending:
        # Descendants of the child can keep pipes open; keep what was read.
        await asyncio.gather(*pending, return_exceptions=True)


async def run_process(
    argv: Sequence[str],
    *,
    cwd: Path,
    timeout_seconds: float,
    stdin_text: str | None = None,
    env: Mapping[str, str] | None = None,
) -> RawOutcome:
    """
    Run one child process to completion.

    Args:
        argv: Executable and arguments
        cwd: Working directory for the child
        timeout_seconds: Wall-clock budget; the child is terminated when exceeded
        stdin_text: Text written to stdin before it is closed; stdin is
            ``/dev/null`` when omitted
        env: Child environment; inherited from this process when omitted

    Returns:
        RawOutcome with captured output and exit code, or with ``error`` set
        when the process could not be spawned
    """
    started_at = time.monotonic()
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            stdin=asyncio.subprocess.PIPE if stdin_text is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (OSError, ValueError) as exc:
        error = ProcessSpawnError(argv[0] if argv else "<empty argv>", str(exc))
        logger.warning(str(error))
        return RawOutcome.spawn_failure(started_at, str(error))

    logger.debug(f"Spawned pid {proc.pid}: {' '.join(argv)}")
    stdout_buf = bytearray()
    stderr_buf = bytearray()
    drains = [
        asyncio.create_task(_drain(proc.stdout, stdout_buf)),
        asyncio.create_task(_drain(proc.stderr, stderr_buf)),
    ]

    async def _communicate() -> None:
        if stdin_text is not None:
            await _feed_stdin(proc, stdin_text)
        await proc.wait()

    try:
        # One deadline covers both the stdin write and the exit.
        try:
            await asyncio.wait_for(_communicate(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.info(f"pid {proc.pid} exceeded {timeout_seconds}s, terminating")
            await _stop(proc)
    finally:
        if proc.returncode is None:
            await _stop(proc)
        await _settle(drains)

    return RawOutcome(
        started_at=started_at,
        stdout=stdout_buf.decode("utf-8", errors="replace"),
        stderr=stderr_buf.decode("utf-8", errors="replace"),
        exit_code=proc.returncode,
        finished_at=time.monotonic(),
    )
