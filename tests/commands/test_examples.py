"""Tests for the --examples flag on CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from cubectl.cli import cli

# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["allocate", "--examples"], ["cubectl allocate"]),
    (["calculate", "--examples"], ["--force"]),
    (["translate", "--examples"], ["cubectl translate"]),
    (["consolidate", "--examples"], ["--type all", "--json consolidate"]),
    (["calc-epu", "--examples"], ["cubectl calc-epu"]),
    (["status", "--examples"], ["cubectl status"]),
    (["load", "--examples"], ["--replace"]),
    (["metadata", "--examples"], ["cubectl metadata dimensions"]),
    (["metadata", "members", "--examples"], ["--filter"]),
    (["metadata", "expand", "--examples"], ["{[Hierarchy]}"]),
]


def _examples_id(item: tuple[list[str], list[str]]) -> str:
    args, _ = item
    return "_".join(a for a in args if a != "--examples")


@pytest.mark.parametrize(
    ("args", "keywords"),
    EXAMPLES_COMMANDS,
    ids=[_examples_id(item) for item in EXAMPLES_COMMANDS],
)
def test_examples_flag(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    assert "Examples for" in result.output
    for keyword in keywords:
        assert keyword in result.output


def test_examples_skip_required_options(cli_runner: CliRunner) -> None:
    """--examples is eager, so missing member options are not reported."""
    result = cli_runner.invoke(cli, ["consolidate", "--examples"])
    assert "Missing option" not in result.output


def test_examples_hidden_from_help_text(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["consolidate", "--help"])
    assert "--examples" in result.output
    assert "cubectl consolidate --type all" not in result.output
