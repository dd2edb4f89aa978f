"""Tests for the per-OS browser launch strategies."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from faas_login.auth.browser import (
    AppleBrowserLauncher,
    UnixBrowserLauncher,
    WindowsBrowserLauncher,
    detect_launcher,
)
from faas_login.exceptions import BrowserLaunchError
from faas_login.exit_codes import EXIT_BROWSER_ERROR

URL = "https://idp.example.com/authorize?client_id=my-id&response_type=token"


class TestCommands:
    def test_unix_uses_xdg_open_through_shell(self) -> None:
        argv = UnixBrowserLauncher().command(URL)
        assert argv[:2] == ["sh", "-c"]
        assert argv[2] == f"xdg-open '{URL}'"

    def test_apple_uses_open_through_shell(self) -> None:
        argv = AppleBrowserLauncher().command(URL)
        assert argv == ["sh", "-c", f"open '{URL}'"]

    def test_windows_escapes_ampersands(self) -> None:
        argv = WindowsBrowserLauncher().command(URL)
        assert argv[:2] == ["cmd", "/c"]
        assert argv[2] == (
            "start https://idp.example.com/authorize?client_id=my-id^&response_type=token"
        )

    def test_unix_url_not_percent_escaped(self) -> None:
        assert "&response_type" in UnixBrowserLauncher().command(URL)[2]


class TestOpen:
    def test_runs_command_with_inherited_stdio(self) -> None:
        with patch("faas_login.auth.browser.subprocess.run") as mock_run:
            UnixBrowserLauncher().open(URL)

        mock_run.assert_called_once_with(["sh", "-c", f"xdg-open '{URL}'"], check=True)

    def test_non_zero_exit_raises(self) -> None:
        failure = subprocess.CalledProcessError(3, ["sh"])
        with patch("faas_login.auth.browser.subprocess.run", side_effect=failure):
            with pytest.raises(BrowserLaunchError, match="unable to launch browser") as exc_info:
                UnixBrowserLauncher().open(URL)
        assert "status 3" in str(exc_info.value)
        assert exc_info.value.exit_code == EXIT_BROWSER_ERROR

    def test_missing_executable_raises(self) -> None:
        with patch(
            "faas_login.auth.browser.subprocess.run",
            side_effect=FileNotFoundError("cmd not found"),
        ):
            with pytest.raises(BrowserLaunchError, match="unable to launch browser"):
                WindowsBrowserLauncher().open(URL)


class TestDetectLauncher:
    @pytest.mark.parametrize(
        ("system", "expected"),
        [
            ("Linux", UnixBrowserLauncher),
            ("FreeBSD", UnixBrowserLauncher),
            ("Darwin", AppleBrowserLauncher),
            ("Windows", WindowsBrowserLauncher),
        ],
    )
    def test_by_system_name(self, system: str, expected: type) -> None:
        assert isinstance(detect_launcher(system), expected)

    def test_uses_platform_when_not_given(self) -> None:
        with patch("faas_login.auth.browser.platform.system", return_value="Darwin"):
            launcher = detect_launcher()
        assert launcher.name == "apple"
