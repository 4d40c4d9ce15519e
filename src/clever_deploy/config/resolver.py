"""Resolve raw runner inputs into a validated :class:`Configuration`.

Credentials are read from the process environment only; every other option
comes from workflow inputs. Resolution is a pure function of its inputs so
resolving twice from the same sources yields equal configurations.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from ..exceptions import ConfigurationError
from ..host.inputs import ActionInputs
from .models import DEFAULT_CLEVER_CLI, Configuration, ExtraEnv

__all__ = [
    "EXTRA_ENV_PREFIX",
    "collect_prefixed_env",
    "parse_allow_list",
    "parse_env_lines",
    "parse_timeout",
    "resolve_arguments",
    "resolve_clever_cli",
]

logger = logging.getLogger(__name__)

TOKEN_VAR = "CLEVER_TOKEN"
SECRET_VAR = "CLEVER_SECRET"
CLI_VAR = "CLEVER_CLI"
EXTRA_ENV_PREFIX = "CLEVER_ENV_"
_REMEDIATION_URL = "https://err.sh/47ng/actions-clever-cloud/env"

_ENV_LINE_RE = re.compile(r"^(\w+)=(.*)$", re.ASCII)
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_env_lines(lines: Iterable[str]) -> ExtraEnv:
    """Parse ``NAME=value`` declarations, ignoring anything else."""
    env: ExtraEnv = {}
    for line in lines:
        match = _ENV_LINE_RE.match(line.strip())
        if not match:
            continue
        env[match.group(1)] = match.group(2)
    return env


def parse_allow_list(raw: str) -> List[str]:
    return [name.strip() for name in raw.split(",") if name.strip()]


def collect_prefixed_env(
    environ: Mapping[str, str], allow_list: Optional[List[str]] = None
) -> ExtraEnv:
    """Collect ``CLEVER_ENV_<NAME>`` variables, filtered by ``allow_list``."""
    env: ExtraEnv = {}
    for key, value in environ.items():
        if not key.startswith(EXTRA_ENV_PREFIX):
            continue
        name = key[len(EXTRA_ENV_PREFIX):]
        if not name:
            continue
        if allow_list and name not in allow_list:
            logger.warning(
                "Ignoring extra environment variable %s: not in extraEnvSafelist",
                name,
            )
            continue
        env[name] = value
    return env


def parse_timeout(raw: str) -> Optional[int]:
    """Parse a leading integer; unparsable or non-positive means no timeout."""
    match = _LEADING_INT_RE.match(raw or "")
    if not match:
        return None
    value = int(match.group(1))
    return value if value > 0 else None


def resolve_clever_cli(
    explicit: Optional[str], environ: Mapping[str, str]
) -> str:
    if explicit:
        return explicit
    if environ.get(CLI_VAR):
        return environ[CLI_VAR]
    return shutil.which(DEFAULT_CLEVER_CLI) or DEFAULT_CLEVER_CLI


def resolve_arguments(
    inputs: Optional[ActionInputs] = None,
    environ: Optional[Mapping[str, str]] = None,
    *,
    clever_cli: Optional[str] = None,
) -> Configuration:
    """Build the run configuration.

    Raises:
        ConfigurationError: missing credentials or a malformed boolean input.
    """
    env = os.environ if environ is None else environ
    inputs = inputs if inputs is not None else ActionInputs(env)

    token = _require_credential(env, TOKEN_VAR)
    secret = _require_credential(env, SECRET_VAR)

    deploy_path = inputs.get_input("deployPath")
    log_file = inputs.get_input("logFile")
    return Configuration(
        token=token,
        secret=secret,
        alias=inputs.get_input("alias") or None,
        app_id=inputs.get_input("appID") or None,
        force=inputs.get_boolean_input("force"),
        timeout=parse_timeout(inputs.get_input("timeout")),
        deploy_path=Path(deploy_path) if deploy_path else None,
        log_file=Path(log_file) if log_file else None,
        quiet=inputs.get_boolean_input("quiet"),
        same_commit_policy=inputs.get_input("sameCommitPolicy") or None,
        extra_env=_resolve_extra_env(inputs, env),
        clever_cli=resolve_clever_cli(clever_cli, env),
    )


def _require_credential(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name, "")
    if not value:
        raise ConfigurationError(
            f"Missing {name} environment variable: {_REMEDIATION_URL}"
        )
    return value


def _resolve_extra_env(inputs: ActionInputs, environ: Mapping[str, str]) -> ExtraEnv:
    extra_env = parse_env_lines(inputs.get_multiline_input("setEnv"))
    allow_list = parse_allow_list(inputs.get_input("extraEnvSafelist"))
    extra_env.update(collect_prefixed_env(environ, allow_list))

    if extra_env:
        logger.info("Setting extra environment variables:")
        for name in extra_env:
            logger.info("  %s", name)
    return extra_env
