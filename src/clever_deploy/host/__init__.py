"""Plumbing towards the hosted automation runner."""

from .inputs import ActionInputs, input_env_name
from .reporting import (
    WorkflowCommandFormatter,
    is_debug,
    running_in_actions,
    set_failed,
    setup_logging,
)

__all__ = [
    "ActionInputs",
    "WorkflowCommandFormatter",
    "input_env_name",
    "is_debug",
    "running_in_actions",
    "set_failed",
    "setup_logging",
]
