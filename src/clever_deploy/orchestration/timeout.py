"""Race an invocation against a timer without cancelling it."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

__all__ = ["wait_or_abandon"]

logger = logging.getLogger(__name__)


async def wait_or_abandon(task: "asyncio.Task[Any]", timeout: float) -> bool:
    """Wait up to ``timeout`` seconds for ``task``.

    Returns True when the timer fired first. The task is left running in
    that case; its eventual outcome is only logged.
    """
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task in done:
        return False
    task.add_done_callback(_log_abandoned_outcome)
    return True


def _log_abandoned_outcome(task: "asyncio.Task[Any]") -> None:
    if task.cancelled():
        logger.debug("Abandoned task %s was cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned task %s failed: %s", task.get_name(), exc)
        return
    logger.debug("Abandoned task %s finished with %s", task.get_name(), task.result())
