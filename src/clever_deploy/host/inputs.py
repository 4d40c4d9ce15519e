"""Read workflow inputs the way the hosted runner exposes them.

The runner materializes every ``with:`` input as an ``INPUT_<NAME>``
environment variable. Values read here are trimmed strings; typed parsing is
left to :mod:`clever_deploy.config.resolver`, except for booleans whose
accepted spellings are fixed by the runner.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Mapping, Optional

from ..exceptions import ConfigurationError

__all__ = ["ActionInputs", "input_env_name"]

_TRUE_VALUES = ("true", "True", "TRUE")
_FALSE_VALUES = ("false", "False", "FALSE")


def input_env_name(name: str) -> str:
    """Return the environment variable backing input ``name``."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


class ActionInputs:
    """Typed accessors over ``INPUT_*`` variables with optional defaults.

    ``defaults`` holds values for inputs the environment leaves unset or
    empty (used for local runs driven by a YAML file).
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._defaults: Dict[str, str] = {
            key: _stringify(value) for key, value in (defaults or {}).items()
        }

    def get_input(self, name: str) -> str:
        value = self._environ.get(input_env_name(name), "")
        if not value.strip():
            value = self._defaults.get(name, "")
        return value.strip()

    def get_boolean_input(self, name: str) -> bool:
        """Parse a YAML 1.2 core-schema boolean; empty means ``False``."""
        value = self.get_input(name)
        if not value:
            return False
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise ConfigurationError(
            f'Input does not meet YAML 1.2 "Core Schema" specification: {name}\n'
            "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
        )

    def get_multiline_input(self, name: str) -> List[str]:
        raw = self._environ.get(input_env_name(name), "")
        if not raw.strip():
            raw = self._defaults.get(name, "")
        return [line.strip() for line in raw.split("\n") if line != ""]


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict):
        return "\n".join(f"{key}={_stringify(val)}" for key, val in value.items())
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(item) for item in value)
    return str(value)
