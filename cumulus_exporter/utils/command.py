"""
External command execution for collectors.

Every data source other than plain files is a local executable that
prints JSON on stdout when called with -j.
"""

import asyncio
import os
from pathlib import Path

import psutil

from ..errors import InvocationError
from ..logging import get_logger

logger = get_logger("utils.command")


def check_executable(path: str | Path) -> bool:
    """Check that path is an existing, executable regular file."""
    path = Path(path)
    return path.is_file() and os.access(path, os.X_OK)


def _kill_tree(pid: int) -> None:
    """Kill a process and every process it spawned."""
    try:
        parent = psutil.Process(pid)
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        return

    for proc in [*children, parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass


async def run_command(path: str | Path, *args: str, timeout: float = 10.0) -> bytes:
    """
    Run an executable and return its standard output.

    Args:
        path: Executable path
        args: Arguments passed to the executable
        timeout: Seconds to wait before killing the process

    Returns:
        Complete stdout of the process

    Raises:
        InvocationError: If the executable cannot be started, exits with a
            non-zero code or does not finish within timeout
    """
    command = " ".join([str(path), *args])

    try:
        proc = await asyncio.create_subprocess_exec(
            str(path),
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise InvocationError(f"cannot run {command}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        _kill_tree(proc.pid)
        await proc.wait()
        raise InvocationError(f"{command} timed out after {timeout}s") from None
    except asyncio.CancelledError:
        _kill_tree(proc.pid)
        raise

    if proc.returncode != 0:
        detail = stderr.decode(errors="replace").strip() or "no error output"
        raise InvocationError(f"{command} exited with code {proc.returncode}: {detail}")

    logger.debug(f"{command} returned {len(stdout)} bytes")
    return stdout
