"""clever-deploy exception hierarchy."""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "DeployError",
    "GitError",
    "InvocationFailed",
    "LaunchError",
    "PreconditionError",
]


class DeployError(Exception):
    """Base class for clever-deploy exceptions."""


class ConfigurationError(DeployError):
    """Raised when raw inputs cannot be resolved into a configuration."""


class PreconditionError(DeployError):
    """Raised when the working copy cannot be deployed as-is."""


class GitError(DeployError):
    """Raised when querying the git working copy fails."""


class InvocationFailed(DeployError):
    """Raised when a clever CLI invocation exits with a nonzero status."""

    def __init__(self, step: str, code: int) -> None:
        super().__init__(f"{step} failed with code {code}")
        self.step = step
        self.code = code


class LaunchError(DeployError):
    """Raised when a program cannot be started at all."""

    def __init__(self, program: str, reason: str) -> None:
        super().__init__(f"Unable to run {program}: {reason}")
        self.program = program
        self.reason = reason
