"""Tests for the load command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from cubectl.cli import cli


@pytest.mark.usefixtures("_isolated_app")
class TestLoadCommand:
    def test_load(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["load", "outline.toml"])
        assert result.exit_code == 0, result.output
        assert "application: Demo" in result.stdout
        assert "Entity" in result.stdout

    def test_load_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "load", "outline.toml"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["op"] == "load"
        assert data["data"]["status"] == 3

    def test_second_load_fails_without_replace(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["load", "outline.toml"])
        result = cli_runner.invoke(cli, ["--json", "load", "outline.toml"])
        assert result.exit_code == 1
        assert result.stdout == ""
        payload = json.loads(result.stderr)
        assert payload["error"]["code"] == "INVALID_OUTLINE"

    def test_replace(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["load", "outline.toml"])
        result = cli_runner.invoke(cli, ["--json", "load", "outline.toml", "--replace"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["data"]["replaced"] is True

    def test_missing_file(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["load", "nope.toml"])
        assert result.exit_code == 1
        assert "Cannot read outline" in result.stderr

    def test_database_in_project(self, cli_runner: CliRunner, tmp_path: object) -> None:
        from pathlib import Path

        cli_runner.invoke(cli, ["load", "outline.toml"])
        assert (Path(str(tmp_path)) / ".cubectl" / "cubectl.db").exists()
