"""Logging setup and failure reporting for the hosted runner.

Under the runner, log records are rendered as workflow commands
(``::debug::``, ``::warning::``, ``::error::``) on stdout so they surface as
annotations; locally they use a plain console format.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Mapping, Optional

__all__ = [
    "WorkflowCommandFormatter",
    "is_debug",
    "running_in_actions",
    "set_failed",
    "setup_logging",
]

logger = logging.getLogger(__name__)

_ROOT_LOGGER_NAME = "clever_deploy"
_PLAIN_FORMAT = "%(levelname)s %(name)s: %(message)s"
_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


class WorkflowCommandFormatter(logging.Formatter):
    """Render records as runner workflow commands."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        command = _COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{_escape_data(message)}"


def running_in_actions(environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("GITHUB_ACTIONS") == "true"


def is_debug(environ: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("RUNNER_DEBUG") == "1"


def setup_logging(
    debug: bool = False,
    *,
    stream: Optional[IO[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> logging.Handler:
    """Install a single stdout handler on the package logger."""
    handler = logging.StreamHandler(stream or sys.stdout)
    if running_in_actions(environ):
        # The runner hides ::debug:: lines unless step debugging is enabled.
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(WorkflowCommandFormatter())
    else:
        level = logging.DEBUG if debug or is_debug(environ) else logging.INFO
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))

    package_logger = logging.getLogger(_ROOT_LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.DEBUG)
    package_logger.propagate = False
    package_logger.addHandler(handler)
    return handler


def set_failed(message: str) -> int:
    """Report the run as failed and return the process exit status."""
    logger.error(message)
    return 1


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
