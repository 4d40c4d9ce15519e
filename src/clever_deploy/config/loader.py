"""Local-run configuration sources.

Behavior: an explicitly requested YAML or dotenv file that is missing or
unreadable raises ``ConfigurationError`` so the CLI can fail fast. Both
sources sit beneath the real environment; they never override it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values

from ..exceptions import ConfigurationError
from .resolver import CLI_VAR, EXTRA_ENV_PREFIX, SECRET_VAR, TOKEN_VAR

__all__ = ["layer_environ", "load_dotenv_config", "load_project_config"]

logger = logging.getLogger(__name__)

_DOTENV_KEYS = (TOKEN_VAR, SECRET_VAR, CLI_VAR)


def load_project_config(config_path: Optional[Path]) -> Dict[str, Any]:
    """Load a YAML mapping of input names to default values.

    Rules:
    - ``config_path`` is None ⇒ return {}.
    - Missing file, YAML parse error, or a non-mapping document ⇒ raise.
    """
    if config_path is None:
        return {}
    if not config_path.exists():
        raise ConfigurationError(f"config file not found: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"failed to read config {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"invalid config format (expected mapping): {config_path}"
        )
    logger.debug("Loaded %d input defaults from %s", len(data), config_path)
    return data


def load_dotenv_config(dotenv_path: Optional[Path]) -> Dict[str, str]:
    """Load credentials and ``CLEVER_ENV_*`` entries from a dotenv file."""
    if dotenv_path is None:
        return {}
    if not dotenv_path.exists():
        raise ConfigurationError(f"env file not found: {dotenv_path}")

    config: Dict[str, str] = {}
    for key, value in dotenv_values(dotenv_path).items():
        if value is None:
            continue
        if key in _DOTENV_KEYS or key.startswith(EXTRA_ENV_PREFIX):
            config[key] = value
    return config


def layer_environ(
    environ: Mapping[str, str], dotenv_config: Mapping[str, str]
) -> Dict[str, str]:
    """Return ``environ`` with dotenv values filling only missing keys."""
    merged = dict(dotenv_config)
    merged.update(environ)
    return merged
