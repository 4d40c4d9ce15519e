"""Deployment orchestration."""

from .pipeline import (
    DeploymentOutcome,
    DeploymentPipeline,
    build_deploy_args,
    build_env_set_args,
    run,
)
from .timeout import wait_or_abandon

__all__ = [
    "DeploymentOutcome",
    "DeploymentPipeline",
    "build_deploy_args",
    "build_env_set_args",
    "run",
    "wait_or_abandon",
]
