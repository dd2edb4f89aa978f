"""End-to-end tests for ``faas-login auth`` against a real loopback listener."""

from __future__ import annotations

import socket
import threading
import time
from unittest.mock import patch

import httpx
from typer.testing import CliRunner

from faas_login.app import app
from faas_login.exceptions import BrowserLaunchError
from faas_login.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_BROWSER_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_LISTENER_ERROR,
    EXIT_SUCCESS,
)

AUTH_URL = "https://idp.example.com/authorize"


def _browser(port: int, fragment_query: str) -> threading.Thread:
    """Start a thread that behaves like the browser once the listener is up."""

    def _run() -> None:
        deadline = time.monotonic() + 10
        while time.monotonic() < deadline:
            try:
                httpx.get(f"http://127.0.0.1:{port}/oauth/callback", timeout=2, trust_env=False)
                break
            except httpx.TransportError:
                time.sleep(0.05)
        httpx.get(
            f"http://127.0.0.1:{port}/oauth2/callback?fragment={fragment_query}",
            timeout=5,
            trust_env=False,
        )

    thread = threading.Thread(target=_run, daemon=True)
    thread.start()
    return thread


def _auth_args(port: int, *extra: str) -> list[str]:
    return [
        "auth",
        "--auth-url",
        AUTH_URL,
        "--client-id",
        "my-id",
        "--listen-port",
        str(port),
        "--gateway",
        "http://gw.example.com:8080",
        *extra,
    ]


class TestAuthCommand:
    def test_token_printed(self, cli_runner: CliRunner, free_port: int) -> None:
        browser = _browser(free_port, "access_token%3Dabc123%26token_type%3DBearer")
        result = cli_runner.invoke(app, _auth_args(free_port, "--no-launch-browser"))
        browser.join(5)

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert '--gateway "http://gw.example.com:8080" --token "abc123"' in result.output
        assert f"Starting local token server on port {free_port}" in result.output
        assert "Open this URL in your browser:" in result.output

    def test_no_token_still_exits_zero(self, cli_runner: CliRunner, free_port: int) -> None:
        browser = _browser(free_port, "error%3Daccess_denied")
        result = cli_runner.invoke(app, _auth_args(free_port, "--no-launch-browser"))
        browser.join(5)

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "Unable to detect a valid access_token" in result.output
        assert "--token" not in result.output

    def test_env_supplies_options(self, cli_runner: CliRunner, free_port: int) -> None:
        browser = _browser(free_port, "access_token%3Dfrom-env")
        result = cli_runner.invoke(
            app,
            ["auth"],
            env={
                "FAAS_LOGIN_AUTH_URL": AUTH_URL,
                "FAAS_LOGIN_CLIENT_ID": "my-id",
                "FAAS_LOGIN_LISTEN_PORT": str(free_port),
                "FAAS_LOGIN_LAUNCH_BROWSER": "false",
                "OPENFAAS_URL": "http://openfaas:8080",
            },
        )
        browser.join(5)

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert '--gateway "http://openfaas:8080" --token "from-env"' in result.output

    def test_launches_browser(self, cli_runner: CliRunner, free_port: int) -> None:
        opened: list[str] = []

        class _Launcher:
            def open(self, url: str) -> None:
                opened.append(url)
                _browser(free_port, "access_token%3Dlaunched")

        with patch("faas_login.auth.flow.detect_launcher", return_value=_Launcher()):
            result = cli_runner.invoke(app, _auth_args(free_port))

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert len(opened) == 1
        assert opened[0].startswith(AUTH_URL + "?")
        assert f"redirect_uri=http%3A%2F%2F127.0.0.1%3A{free_port}%2Foauth%2Fcallback" in opened[0]
        assert f"Launching browser: {opened[0]}" in result.output
        assert '--token "launched"' in result.output


class TestAuthCommandErrors:
    def test_missing_auth_url(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["auth", "--client-id", "my-id"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "--auth-url" in result.output

    def test_missing_client_id(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["auth", "--auth-url", AUTH_URL])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "--client-id" in result.output

    def test_ftp_auth_url(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            app, ["auth", "--auth-url", "ftp://idp/authorize", "--client-id", "my-id"]
        )
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "invalid URL" in result.output

    def test_browser_failure(self, cli_runner: CliRunner, free_port: int) -> None:
        class _Broken:
            def open(self, url: str) -> None:
                raise BrowserLaunchError("unable to launch browser: xdg-open exited with status 3")

        with patch("faas_login.auth.flow.detect_launcher", return_value=_Broken()):
            result = cli_runner.invoke(app, _auth_args(free_port))

        assert result.exit_code == EXIT_BROWSER_ERROR
        assert "unable to launch browser" in result.output
        assert "Launching browser: https://idp.example.com/authorize?" in result.output

    def test_port_in_use(self, cli_runner: CliRunner, free_port: int) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
            occupied.bind(("127.0.0.1", free_port))
            occupied.listen(1)
            result = cli_runner.invoke(app, _auth_args(free_port, "--no-launch-browser"))

        assert result.exit_code == EXIT_LISTENER_ERROR
        assert "unable to start local token server" in result.output

    def test_timeout(self, cli_runner: CliRunner, free_port: int) -> None:
        result = cli_runner.invoke(
            app, _auth_args(free_port, "--no-launch-browser", "--timeout", "1")
        )
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "timed out waiting for redirect" in result.output


def test_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("faas-login ")
