"""Tests for the root rentctl CLI."""

from pathlib import Path

from click.testing import CliRunner

from rentctl import __version__
from rentctl.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "rentctl" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


# --- Global flags ---


def test_json_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["--json", "--version"]).exit_code == 0


def test_quiet_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["-q", "--version"]).exit_code == 0


def test_verbose_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["-v", "--version"]).exit_code == 0


def test_log_json_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["--log-json", "--version"]).exit_code == 0


def test_token_option_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["--token", "abc", "--version"]).exit_code == 0


def test_config_option_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["-c", "/tmp/test.toml", "--version"]).exit_code == 0


def test_missing_config_file_is_reported(cli_runner: CliRunner, tmp_path: Path) -> None:
    result = cli_runner.invoke(cli, ["-c", str(tmp_path / "absent.toml"), "whoami"])
    assert result.exit_code == 1
    assert "--config points at" in result.output


def test_unknown_command(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["checkout"])
    assert result.exit_code == 2
