"""Launch external programs and bridge their exit status into asyncio.

The child runs under :class:`subprocess.Popen` and a pump thread drains its
merged stdout/stderr into the output sink. Awaiting callers get the exit
status through an asyncio future. A caller that stops waiting leaves the
child and its pump running; the pump is not a daemon thread, so the
interpreter keeps reading the pipe until the child exits and the child never
sees a closed stdout.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
import threading
from pathlib import Path
from typing import Optional, Protocol, Sequence

from ..exceptions import LaunchError
from .output import OutputSink

__all__ = ["Invoker", "SubprocessInvoker", "format_command"]

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
_SECRET_FLAGS = frozenset({"--token", "--secret"})


class Invoker(Protocol):
    async def exec(
        self,
        program: str,
        args: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        sink: Optional[OutputSink] = None,
    ) -> int: ...


def format_command(program: str, args: Sequence[str]) -> str:
    """Render a command line with credential values masked."""
    parts = [program]
    mask_next = False
    for arg in args:
        parts.append("***" if mask_next else arg)
        mask_next = arg in _SECRET_FLAGS
    return " ".join(parts)


class SubprocessInvoker:
    """Run a program to completion and return its exit status.

    Raises:
        LaunchError: the program could not be started (missing binary,
            permission denied, bad working directory).
    """

    async def exec(
        self,
        program: str,
        args: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        sink: Optional[OutputSink] = None,
    ) -> int:
        logger.debug("Running: %s", format_command(program, args))
        loop = asyncio.get_running_loop()
        try:
            process = subprocess.Popen(
                [program, *args],
                cwd=str(cwd) if cwd is not None else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as exc:
            raise LaunchError(program, exc.strerror or str(exc)) from exc

        exit_future: asyncio.Future[int] = loop.create_future()
        pump = threading.Thread(
            target=_pump_output,
            args=(process, sink, loop, exit_future),
            name=f"invoke-{Path(program).name}",
            daemon=False,
        )
        pump.start()
        return await exit_future


def _pump_output(
    process: "subprocess.Popen[bytes]",
    sink: Optional[OutputSink],
    loop: asyncio.AbstractEventLoop,
    exit_future: "asyncio.Future[int]",
) -> None:
    stdout = process.stdout
    assert stdout is not None
    for chunk in iter(lambda: stdout.read1(_CHUNK_SIZE), b""):
        if sink is not None:
            sink.write(chunk)
    stdout.close()
    code = process.wait()
    try:
        loop.call_soon_threadsafe(_resolve, exit_future, code)
    except RuntimeError:
        # Loop already closed: nobody is waiting for this child anymore.
        logger.debug("Abandoned process %s exited with code %s", process.pid, code)


def _resolve(exit_future: "asyncio.Future[int]", code: int) -> None:
    if not exit_future.done():
        exit_future.set_result(code)
