"""Git queries used as deployment preconditions."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from ..exceptions import GitError

__all__ = ["CommandResult", "GitRunner", "is_shallow_repository", "run_command"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a subprocess invocation."""

    code: int
    output: str


GitRunner = Callable[[Sequence[str], Optional[Path]], Awaitable[CommandResult]]


async def run_command(
    cmd: Sequence[str], cwd: Optional[Path] = None
) -> CommandResult:
    """Run a command and capture its stdout; stderr is discarded."""
    logger.debug("Running command: %s", " ".join(cmd))
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd) if cwd is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except (OSError, asyncio.SubprocessError) as exc:
        logger.error("Command failed to start: %s", exc)
        return CommandResult(127, str(exc))

    stdout, _ = await process.communicate()
    output = stdout.decode("utf-8", errors="replace") if stdout else ""
    logger.debug("Command completed with code %s", process.returncode)
    return CommandResult(process.returncode or 0, output)


async def is_shallow_repository(
    cwd: Optional[Path] = None, runner: GitRunner = run_command
) -> bool:
    """Return True when the working copy is a shallow clone.

    Raises:
        GitError: git could not answer (not a repository, git missing).
    """
    result = await runner(["git", "rev-parse", "--is-shallow-repository"], cwd)
    answer = result.output.strip()
    if result.code != 0 or answer not in ("true", "false"):
        raise GitError(
            "Unable to determine whether the working copy is a shallow clone"
            f" (git exited with code {result.code}): {answer or 'no output'}"
        )
    return answer == "true"
