"""Subprocess invocation, git queries, and output fan-out."""

from .git import CommandResult, is_shallow_repository, run_command
from .invoker import Invoker, SubprocessInvoker, format_command
from .output import AnnotationTransform, OutputMultiplexer, OutputSink

__all__ = [
    "AnnotationTransform",
    "CommandResult",
    "Invoker",
    "OutputMultiplexer",
    "OutputSink",
    "SubprocessInvoker",
    "format_command",
    "is_shallow_repository",
    "run_command",
]
