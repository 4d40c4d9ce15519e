from __future__ import annotations

import json
import os
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from clever_deploy import cli
from clever_deploy.config import load_dotenv_config, load_project_config
from clever_deploy.exceptions import ConfigurationError


def _console() -> Console:
    return Console(file=StringIO(), force_terminal=False, color_system=None, width=200)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ("CLEVER_TOKEN", "CLEVER_SECRET", "CLEVER_CLI", "GITHUB_ACTIONS"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("INPUT_") or name.startswith("CLEVER_ENV_"):
            monkeypatch.delenv(name)
    return monkeypatch


def test_parser_defaults_to_deploy() -> None:
    args = cli.create_parser().parse_args([])
    assert args.command == "deploy"
    assert args.config is None
    assert args.env_file is None


def test_resolve_from_yaml_and_env_file(clean_env, tmp_path: Path) -> None:
    config_file = tmp_path / "deploy.yaml"
    config_file.write_text(
        "appID: app_yaml\n"
        "force: true\n"
        "timeout: 1800\n"
        "setEnv:\n"
        "  FOO: foo\n"
    )
    env_file = tmp_path / ".env"
    env_file.write_text(
        "CLEVER_TOKEN=file-token\nCLEVER_SECRET=file-secret\nCLEVER_ENV_BAR=bar\n"
        "UNRELATED=ignored\n"
    )
    clean_env.setenv("CLEVER_TOKEN", "real-token")
    clean_env.setenv("INPUT_TIMEOUT", "60")

    args = cli.create_parser().parse_args(
        [
            "--config",
            str(config_file),
            "--env-file",
            str(env_file),
            "--clever-cli",
            "/opt/clever",
        ]
    )
    config = cli.resolve_from_args(args)

    assert config.token == "real-token"
    assert config.secret == "file-secret"
    assert config.app_id == "app_yaml"
    assert config.force is True
    assert config.timeout == 60
    assert config.extra_env == {"FOO": "foo", "BAR": "bar"}
    assert config.clever_cli == "/opt/clever"


def test_load_project_config_errors(tmp_path: Path) -> None:
    assert load_project_config(None) == {}
    with pytest.raises(ConfigurationError, match="not found"):
        load_project_config(tmp_path / "nope.yaml")
    bad = tmp_path / "list.yaml"
    bad.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError, match="expected mapping"):
        load_project_config(bad)
    broken = tmp_path / "broken.yaml"
    broken.write_text("key: [unclosed\n")
    with pytest.raises(ConfigurationError, match="failed to read"):
        load_project_config(broken)


def test_load_dotenv_config_missing_file(tmp_path: Path) -> None:
    assert load_dotenv_config(None) == {}
    with pytest.raises(ConfigurationError, match="env file not found"):
        load_dotenv_config(tmp_path / ".env")


def test_describe_config_redacts_credentials(clean_env) -> None:
    clean_env.setenv("CLEVER_TOKEN", "t0k3n")
    clean_env.setenv("CLEVER_SECRET", "s3cr3t")
    clean_env.setenv("INPUT_SETENV", "API_KEY=very-secret")
    args = cli.create_parser().parse_args(["config", "--clever-cli", "clever"])
    described = cli.describe_config(cli.resolve_from_args(args))
    assert described["token"] == "[REDACTED]"
    assert described["secret"] == "[REDACTED]"
    assert described["setEnv"] == ["API_KEY"]
    assert "very-secret" not in json.dumps(described)


@pytest.mark.asyncio
async def test_config_command_prints_table(clean_env) -> None:
    clean_env.setenv("CLEVER_TOKEN", "t0k3n")
    clean_env.setenv("CLEVER_SECRET", "s3cr3t")
    clean_env.setenv("INPUT_ALIAS", "my-app")
    console = _console()
    args = cli.create_parser().parse_args(["config", "--clever-cli", "clever"])
    assert await cli._dispatch(console, args) == 0
    output = console.file.getvalue()
    assert "my-app" in output
    assert "t0k3n" not in output
    assert "s3cr3t" not in output


@pytest.mark.asyncio
async def test_missing_credentials_fail_before_running(clean_env, caplog) -> None:
    args = cli.create_parser().parse_args([])
    assert await cli._dispatch(_console(), args) == 1
    assert "Missing CLEVER_TOKEN environment variable" in caplog.text


@pytest.mark.asyncio
async def test_deploy_command_uses_pipeline_result(clean_env) -> None:
    clean_env.setenv("CLEVER_TOKEN", "t0k3n")
    clean_env.setenv("CLEVER_SECRET", "s3cr3t")
    seen = []

    async def fake_run(config):
        seen.append(config)
        return False

    clean_env.setattr(cli, "run", fake_run)
    args = cli.create_parser().parse_args(["--clever-cli", "clever"])
    assert await cli._dispatch(_console(), args) == 1
    assert seen[0].token == "t0k3n"
