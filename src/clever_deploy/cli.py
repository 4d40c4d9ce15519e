#!/usr/bin/env python3
"""clever-deploy CLI entrypoint.

Inside a workflow the action runs ``clever-deploy`` with no arguments and
every option arrives as an ``INPUT_*`` variable. The flags below only exist
for local runs and debugging.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Final, List, Optional

from rich.console import Console
from rich.table import Table

from . import __version__
from .config import (
    Configuration,
    layer_environ,
    load_dotenv_config,
    load_project_config,
    resolve_arguments,
)
from .exceptions import ConfigurationError
from .host import ActionInputs, set_failed, setup_logging
from .orchestration import run

__all__: Final = ["create_parser", "main"]

_REDACTED = "[REDACTED]"


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clever-deploy",
        description=(
            "Deploy an application to Clever Cloud with the clever CLI.\n"
            "Credentials come from CLEVER_TOKEN / CLEVER_SECRET; options from\n"
            "INPUT_* variables (or --config for local runs)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=("deploy", "config"),
        default="deploy",
        help="deploy (default) or config to print the resolved configuration",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file of input defaults (appID, alias, force, timeout, ...)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="dotenv file providing CLEVER_TOKEN, CLEVER_SECRET, CLEVER_ENV_*",
    )
    parser.add_argument(
        "--clever-cli", help="Path to the clever binary (default: PATH lookup)"
    )
    parser.add_argument(
        "--json", action="store_true", help="config: print JSON instead of a table"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def resolve_from_args(args: argparse.Namespace) -> Configuration:
    """Resolve the configuration from the environment plus local-run files."""
    environ = layer_environ(os.environ, load_dotenv_config(args.env_file))
    inputs = ActionInputs(environ, defaults=load_project_config(args.config))
    return resolve_arguments(inputs, environ, clever_cli=args.clever_cli)


def describe_config(config: Configuration) -> Dict[str, Any]:
    return {
        "token": _REDACTED,
        "secret": _REDACTED,
        "appID": config.app_id,
        "alias": config.alias,
        "force": config.force,
        "timeout": config.timeout,
        "deployPath": str(config.deploy_path) if config.deploy_path else None,
        "logFile": str(config.log_file) if config.log_file else None,
        "quiet": config.quiet,
        "sameCommitPolicy": config.same_commit_policy,
        # Values may be secrets; names only.
        "setEnv": list(config.extra_env),
        "cleverCLI": config.clever_cli,
    }


def print_config(console: Console, config: Configuration, as_json: bool) -> None:
    described = describe_config(config)
    if as_json:
        console.print_json(json.dumps(described))
        return
    table = Table(title="clever-deploy configuration")
    table.add_column("input")
    table.add_column("value")
    for key, value in described.items():
        if isinstance(value, list):
            value = ", ".join(value) or "-"
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)


async def _dispatch(console: Console, args: argparse.Namespace) -> int:
    try:
        config = resolve_from_args(args)
    except ConfigurationError as exc:
        return set_failed(str(exc))
    if args.command == "config":
        print_config(console, config, args.json)
        return 0
    return 0 if await run(config) else 1


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint."""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug)
    console = Console()
    rc = asyncio.run(_dispatch(console, args))
    sys.exit(int(rc))


if __name__ == "__main__":
    main()
