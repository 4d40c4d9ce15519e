from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from clever_deploy.runner.git import CommandResult


class FakeInvoker:
    """Record clever CLI calls and answer with canned exit codes."""

    def __init__(
        self,
        codes: Optional[Dict[str, int]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.calls: List[Tuple[str, List[str], Optional[Path]]] = []
        self.codes = codes or {}
        self.error = error
        # Subcommands that block until their event is set.
        self.gates: Dict[str, asyncio.Event] = {}

    async def exec(self, program, args, *, cwd=None, sink=None) -> int:
        self.calls.append((program, list(args), cwd))
        if self.error is not None:
            raise self.error
        gate = self.gates.get(args[0])
        if gate is not None:
            await gate.wait()
        return self.codes.get(args[0], 0)

    def args(self, index: int) -> List[str]:
        return self.calls[index][1]

    def subcommands(self) -> List[str]:
        return [args[0] for _, args, _ in self.calls]


def _git_answer(output: str, code: int = 0):
    seen: List[Sequence[str]] = []

    async def runner(cmd, cwd=None) -> CommandResult:
        seen.append(list(cmd))
        return CommandResult(code, output)

    runner.seen = seen  # type: ignore[attr-defined]
    return runner


@pytest.fixture()
def fake_invoker():
    """Factory for :class:`FakeInvoker` instances."""
    return FakeInvoker


@pytest.fixture()
def invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture()
def git_answer():
    """Factory for git runners that always answer ``output``."""
    return _git_answer


@pytest.fixture(autouse=True)
def _package_logger_propagates():
    logger = logging.getLogger("clever_deploy")
    logger.propagate = True
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
