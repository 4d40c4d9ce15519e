"""Configuration model, argument resolution, and local-run loaders."""

from .loader import layer_environ, load_dotenv_config, load_project_config
from .models import DEFAULT_CLEVER_CLI, Configuration, ExtraEnv
from .resolver import (
    EXTRA_ENV_PREFIX,
    collect_prefixed_env,
    parse_allow_list,
    parse_env_lines,
    parse_timeout,
    resolve_arguments,
    resolve_clever_cli,
)

__all__ = [
    "Configuration",
    "DEFAULT_CLEVER_CLI",
    "EXTRA_ENV_PREFIX",
    "ExtraEnv",
    "collect_prefixed_env",
    "layer_environ",
    "load_dotenv_config",
    "load_project_config",
    "parse_allow_list",
    "parse_env_lines",
    "parse_timeout",
    "resolve_arguments",
    "resolve_clever_cli",
]
