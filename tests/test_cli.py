"""Tests for the command-line interface."""

from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from switchyard import __version__
from switchyard.cli.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert f"Switchyard, version {__version__}" in result.output


def test_help_lists_commands(runner):
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("serve", "list", "bundle"):
        assert command in result.output


class TestList:

    def test_empty(self, runner, config):
        result = runner.invoke(cli, ["list"])

        assert result.exit_code == 0
        assert "No extensions found." in result.output

    def test_lists_local_extensions(self, runner, config, write_extension, hook_source):
        write_extension("hook", "counter", hook_source)
        write_extension("storage", "s3", "default = {}\n")

        result = runner.invoke(cli, ["list"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split() == ["hook", "counter", "local"]
        assert lines[1].split() == ["storage", "s3", "local"]

    def test_filter_by_type(self, runner, config, write_extension, hook_source):
        write_extension("hook", "counter", hook_source)
        write_extension("storage", "s3", "default = {}\n")

        result = runner.invoke(cli, ["list", "--type", "storage"])

        assert [line.split()[1] for line in result.output.splitlines()] == ["s3"]

    def test_unreadable_extensions_folder(self, runner, config, temp_dir):
        config.extensions.path = temp_dir / "not-a-dir"
        config.extensions.path.write_text("")

        result = runner.invoke(cli, ["list"])

        assert result.exit_code == 1
        assert "couldn't be opened" in result.output
        assert "Caused by:" in result.output


class TestBundle:

    def test_prints_bundle(self, runner):
        with patch("switchyard.cli.cli._build_bundle", AsyncMock(return_value="export default [];")) as build:
            result = runner.invoke(cli, ["bundle", "interface"])

        assert result.exit_code == 0
        assert result.output.strip() == "export default [];"
        build.assert_awaited_once_with("interface")

    def test_missing_bundle_fails(self, runner):
        with patch("switchyard.cli.cli._build_bundle", AsyncMock(return_value=None)):
            result = runner.invoke(cli, ["bundle", "panel"])

        assert result.exit_code == 1


class TestServe:

    def test_runs_uvicorn_with_factory(self, runner, config):
        with patch("uvicorn.run") as run:
            result = runner.invoke(cli, ["serve", "--port", "9000"])

        assert result.exit_code == 0
        args, kwargs = run.call_args
        assert args == ("switchyard.web.server:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["port"] == 9000
        assert kwargs["host"] == "0.0.0.0"

    def test_reload_flag_enables_auto_reload(self, runner, config):
        with patch("uvicorn.run"):
            runner.invoke(cli, ["serve", "--reload"])

        assert config.extensions.auto_reload is True

    def test_invalid_config_exits(self, runner, monkeypatch, config):
        monkeypatch.setattr(config.log, "format", "xml")

        with patch("uvicorn.run") as run:
            result = runner.invoke(cli, ["serve"])

        assert result.exit_code == 1
        run.assert_not_called()
