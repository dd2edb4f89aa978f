"""Tests for the ``faas-login config`` command group."""

from __future__ import annotations

from typer.testing import CliRunner

from faas_login.app import app
from faas_login.config import load_global_config, save_global_config
from faas_login.models import GlobalConfig


class TestConfigShow:
    def test_lists_every_key(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        for key in GlobalConfig.model_fields:
            assert key in result.output
        assert "http://127.0.0.1:8080" in result.output


class TestConfigSet:
    def test_set_string(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            app, ["config", "set", "auth_url", "https://idp.example.com/authorize"]
        )
        assert result.exit_code == 0, result.output
        assert load_global_config().auth_url == "https://idp.example.com/authorize"

    def test_set_coerces_types(self, cli_runner: CliRunner) -> None:
        assert cli_runner.invoke(app, ["config", "set", "listen_port", "31112"]).exit_code == 0
        assert cli_runner.invoke(app, ["config", "set", "launch_browser", "false"]).exit_code == 0
        assert cli_runner.invoke(app, ["config", "set", "timeout", "90"]).exit_code == 0

        config = load_global_config()
        assert config.listen_port == 31112
        assert config.launch_browser is False
        assert config.timeout == 90.0

    def test_unknown_key(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "colour", "blue"])
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_invalid_value(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "listen_port", "many"])
        assert result.exit_code == 2
        assert "Validation error" in result.output
        assert load_global_config().listen_port == 31111


class TestConfigUnsetAndReset:
    def test_unset_restores_default(self, cli_runner: CliRunner) -> None:
        save_global_config(GlobalConfig(client_id="my-id", listen_port=40000))
        result = cli_runner.invoke(app, ["config", "unset", "client_id"])
        assert result.exit_code == 0, result.output

        config = load_global_config()
        assert config.client_id is None
        assert config.listen_port == 40000

    def test_unset_unknown_key(self, cli_runner: CliRunner) -> None:
        assert cli_runner.invoke(app, ["config", "unset", "colour"]).exit_code == 2

    def test_reset_with_force(self, cli_runner: CliRunner) -> None:
        save_global_config(GlobalConfig(client_id="my-id"))
        result = cli_runner.invoke(app, ["--force", "config", "reset"])
        assert result.exit_code == 0, result.output
        assert load_global_config() == GlobalConfig()

    def test_reset_declined(self, cli_runner: CliRunner) -> None:
        save_global_config(GlobalConfig(client_id="my-id"))
        result = cli_runner.invoke(app, ["config", "reset"], input="n\n")
        assert result.exit_code == 0
        assert load_global_config().client_id == "my-id"
