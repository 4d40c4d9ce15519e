"""Resolved deployment configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

__all__ = ["Configuration", "DEFAULT_CLEVER_CLI", "ExtraEnv"]

ExtraEnv = Dict[str, str]

DEFAULT_CLEVER_CLI = "clever"


@dataclass(frozen=True, slots=True)
class Configuration:
    """Everything a single pipeline run needs, validated once.

    ``timeout`` is in milliseconds and bounds only the deploy invocation.
    ``extra_env`` preserves declaration order and is read-only.
    """

    token: str = field(repr=False)
    secret: str = field(repr=False)
    alias: Optional[str] = None
    app_id: Optional[str] = None
    force: bool = False
    timeout: Optional[int] = None
    deploy_path: Optional[Path] = None
    log_file: Optional[Path] = None
    quiet: bool = False
    same_commit_policy: Optional[str] = None
    extra_env: Mapping[str, str] = field(default_factory=dict)
    clever_cli: str = DEFAULT_CLEVER_CLI

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra_env", MappingProxyType(dict(self.extra_env)))

    @property
    def timeout_seconds(self) -> Optional[float]:
        if self.timeout is None:
            return None
        return self.timeout / 1000
