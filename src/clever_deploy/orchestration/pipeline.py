"""Deployment pipeline driving the clever CLI.

Steps run strictly in order and the first failure aborts the rest:

1. refuse shallow working copies (``git rev-parse --is-shallow-repository``)
2. check ``deploy_path`` exists
3. ``login --token <token> --secret <secret>``
4. ``link <appID> --alias <appID>`` when an application id is given
5. ``env set [--alias <alias>] <name> <value>`` per extra variable
6. ``deploy [--alias <alias>] [--force] [--same-commit-policy <policy>]``

Once linked, the application id is the alias for every following step. With
a timeout configured, the deploy step races a timer; when the timer wins the
run succeeds and the deploy process is left running, never killed, so a push
already in flight is not cut short.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ..config.models import Configuration
from ..exceptions import ConfigurationError, InvocationFailed, PreconditionError
from ..host.reporting import set_failed
from ..runner.git import GitRunner, is_shallow_repository, run_command
from ..runner.invoker import Invoker, SubprocessInvoker
from ..runner.output import OutputMultiplexer, OutputSink
from .timeout import wait_or_abandon

__all__ = [
    "DeploymentOutcome",
    "DeploymentPipeline",
    "SHALLOW_CLONE_HINT",
    "build_deploy_args",
    "build_env_set_args",
    "run",
]

logger = logging.getLogger(__name__)

SHALLOW_CLONE_HINT = (
    "This action requires an unshallow working copy.\n"
    "-> Use the following step before running this action:\n"
    " - uses: actions/checkout@v4\n"
    "   with:\n"
    "     fetch-depth: 0\n"
)


@dataclass(frozen=True, slots=True)
class DeploymentOutcome:
    """Successful pipeline result; ``exit_code`` is None when timed out."""

    timed_out: bool = False
    exit_code: Optional[int] = None


def build_env_set_args(alias: Optional[str], name: str, value: str) -> List[str]:
    args = ["env", "set"]
    if alias:
        args += ["--alias", alias]
    args += [name, value]
    return args


def build_deploy_args(
    alias: Optional[str], force: bool, same_commit_policy: Optional[str]
) -> List[str]:
    args = ["deploy"]
    if alias:
        args += ["--alias", alias]
    if force:
        args.append("--force")
    if same_commit_policy:
        args += ["--same-commit-policy", same_commit_policy]
    return args


class DeploymentPipeline:
    """Run one deployment for a resolved :class:`Configuration`."""

    def __init__(
        self,
        config: Configuration,
        *,
        invoker: Optional[Invoker] = None,
        multiplexer: Optional[OutputMultiplexer] = None,
        git_runner: GitRunner = run_command,
    ) -> None:
        self.config = config
        self._invoker = invoker or SubprocessInvoker()
        self._multiplexer = multiplexer or OutputMultiplexer()
        self._git_runner = git_runner
        # Deploy tasks left running after a timeout.
        self.abandoned: List["asyncio.Task[int]"] = []

    async def execute(self) -> DeploymentOutcome:
        """Run every step; raise a ``DeployError`` on the first failure."""
        await self._check_full_clone()
        cwd = self._resolve_working_directory()
        logger.debug("Clever CLI path: %s", self.config.clever_cli)

        with self._multiplexer.build(
            quiet=self.config.quiet, log_file=self.config.log_file
        ) as sink:
            await self._login()
            alias = await self._link(cwd, sink)
            await self._set_extra_env(alias, cwd, sink)
            return await self._deploy(alias, cwd, sink)

    async def _check_full_clone(self) -> None:
        if await is_shallow_repository(runner=self._git_runner):
            raise PreconditionError(SHALLOW_CLONE_HINT)

    def _resolve_working_directory(self) -> Optional[Path]:
        deploy_path = self.config.deploy_path
        if deploy_path is None:
            return None
        if not deploy_path.is_dir():
            raise ConfigurationError(f"Deploy path does not exist: {deploy_path}")
        logger.debug("Deploying from %s", deploy_path)
        return deploy_path

    async def _login(self) -> None:
        # Login output carries no annotations and stays out of the log file.
        with self._multiplexer.build(quiet=self.config.quiet, annotate=False) as sink:
            await self._invoke(
                "Login",
                [
                    "login",
                    "--token",
                    self.config.token,
                    "--secret",
                    self.config.secret,
                ],
                None,
                sink,
            )

    async def _link(self, cwd: Optional[Path], sink: OutputSink) -> Optional[str]:
        """Link the application id when given and return the effective alias."""
        app_id = self.config.app_id
        if not app_id:
            return self.config.alias
        logger.debug("Linking %s", app_id)
        await self._invoke("Link", ["link", app_id, "--alias", app_id], cwd, sink)
        return app_id

    async def _set_extra_env(
        self, alias: Optional[str], cwd: Optional[Path], sink: OutputSink
    ) -> None:
        for name, value in self.config.extra_env.items():
            await self._invoke(
                f"Setting environment variable {name}",
                build_env_set_args(alias, name, value),
                cwd,
                sink,
            )

    async def _deploy(
        self, alias: Optional[str], cwd: Optional[Path], sink: OutputSink
    ) -> DeploymentOutcome:
        args = build_deploy_args(
            alias, self.config.force, self.config.same_commit_policy
        )
        timeout = self.config.timeout_seconds
        if timeout is None:
            code = await self._exec(args, cwd, sink)
        else:
            task = asyncio.create_task(
                self._exec(args, cwd, sink), name="clever deploy"
            )
            if await wait_or_abandon(task, timeout):
                self.abandoned.append(task)
                logger.info("Deployment timed out, moving on with workflow run")
                return DeploymentOutcome(timed_out=True)
            code = task.result()

        logger.info("code: %s", code)
        if code != 0:
            raise InvocationFailed("Deployment", code)
        return DeploymentOutcome(exit_code=code)

    async def _invoke(
        self,
        step: str,
        args: Sequence[str],
        cwd: Optional[Path],
        sink: OutputSink,
    ) -> None:
        code = await self._exec(args, cwd, sink)
        if code != 0:
            raise InvocationFailed(step, code)

    async def _exec(
        self, args: Sequence[str], cwd: Optional[Path], sink: OutputSink
    ) -> int:
        return await self._invoker.exec(
            self.config.clever_cli, args, cwd=cwd, sink=sink
        )


async def run(
    config: Configuration,
    *,
    invoker: Optional[Invoker] = None,
    multiplexer: Optional[OutputMultiplexer] = None,
    git_runner: GitRunner = run_command,
) -> bool:
    """Run the pipeline and report any failure; return True on success."""
    pipeline = DeploymentPipeline(
        config, invoker=invoker, multiplexer=multiplexer, git_runner=git_runner
    )
    try:
        await pipeline.execute()
    except Exception as exc:
        set_failed(str(exc))
        return False
    return True
