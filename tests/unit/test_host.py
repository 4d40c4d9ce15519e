from __future__ import annotations

import logging
from io import StringIO

import pytest

from clever_deploy.exceptions import ConfigurationError
from clever_deploy.host import (
    ActionInputs,
    WorkflowCommandFormatter,
    input_env_name,
    set_failed,
    setup_logging,
)


def test_input_env_name() -> None:
    assert input_env_name("appID") == "INPUT_APPID"
    assert input_env_name("same commit policy") == "INPUT_SAME_COMMIT_POLICY"


def test_get_input_trims_and_defaults_to_empty() -> None:
    inputs = ActionInputs({"INPUT_ALIAS": "  my-app \n"})
    assert inputs.get_input("alias") == "my-app"
    assert inputs.get_input("appID") == ""


@pytest.mark.parametrize("raw", ["true", "True", "TRUE"])
def test_boolean_true_spellings(raw: str) -> None:
    assert ActionInputs({"INPUT_FORCE": raw}).get_boolean_input("force") is True


@pytest.mark.parametrize("raw", ["false", "False", "FALSE", ""])
def test_boolean_false_spellings(raw: str) -> None:
    assert ActionInputs({"INPUT_FORCE": raw}).get_boolean_input("force") is False


@pytest.mark.parametrize("raw", ["yes", "1", "tRuE", "on"])
def test_boolean_rejects_other_values(raw: str) -> None:
    with pytest.raises(ConfigurationError, match="Core Schema"):
        ActionInputs({"INPUT_FORCE": raw}).get_boolean_input("force")


def test_multiline_input_drops_empty_lines() -> None:
    inputs = ActionInputs({"INPUT_SETENV": "\n  A=1  \n\nB=2\n"})
    assert inputs.get_multiline_input("setEnv") == ["A=1", "B=2"]


def test_defaults_fill_unset_inputs() -> None:
    inputs = ActionInputs(
        {"INPUT_ALIAS": "from-env"},
        defaults={
            "alias": "from-file",
            "appID": "app_file",
            "force": True,
            "timeout": 1800,
            "setEnv": {"FOO": "foo", "BAR": "x=y"},
            "extraEnvSafelist": ["FOO", "BAR"],
        },
    )
    assert inputs.get_input("alias") == "from-env"
    assert inputs.get_input("appID") == "app_file"
    assert inputs.get_boolean_input("force") is True
    assert inputs.get_input("timeout") == "1800"
    assert inputs.get_multiline_input("setEnv") == ["FOO=foo", "BAR=x=y"]
    assert inputs.get_input("extraEnvSafelist") == "FOO,BAR"


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("clever_deploy", level, __file__, 1, msg, None, None)


def test_workflow_command_formatter() -> None:
    formatter = WorkflowCommandFormatter()
    assert formatter.format(_record(logging.INFO, "hello")) == "hello"
    assert formatter.format(_record(logging.DEBUG, "dbg")) == "::debug::dbg"
    assert formatter.format(_record(logging.WARNING, "w")) == "::warning::w"
    assert formatter.format(_record(logging.ERROR, "100%\nline")) == (
        "::error::100%25%0Aline"
    )


def test_set_failed_under_actions() -> None:
    stream = StringIO()
    setup_logging(stream=stream, environ={"GITHUB_ACTIONS": "true"})
    assert set_failed("Deployment failed with code 42") == 1
    logging.getLogger("clever_deploy.orchestration").debug("Linking app")
    assert stream.getvalue().splitlines() == [
        "::error::Deployment failed with code 42",
        "::debug::Linking app",
    ]


def test_local_logging_hides_debug_unless_requested() -> None:
    stream = StringIO()
    setup_logging(stream=stream, environ={})
    logger = logging.getLogger("clever_deploy.runner")
    logger.debug("hidden")
    logger.info("shown")
    assert stream.getvalue() == "INFO clever_deploy.runner: shown\n"

    stream = StringIO()
    setup_logging(stream=stream, environ={"RUNNER_DEBUG": "1"})
    logger.debug("visible")
    assert "DEBUG clever_deploy.runner: visible" in stream.getvalue()


def test_set_failed_logs_under_module_logger(caplog) -> None:
    set_failed("Login failed with code 1")
    assert [(r.name, r.levelno) for r in caplog.records] == [
        ("clever_deploy.host.reporting", logging.ERROR)
    ]
