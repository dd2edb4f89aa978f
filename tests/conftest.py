"""Shared test fixtures for faas-login.

Provides isolated config directories, a clean environment, plain
(uncoloured) output, free loopback ports, and a CLI runner. These
fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

import socket
from pathlib import Path

import pytest

from faas_login.config import ENV_PREFIX, GATEWAY_ENV_FALLBACK
from faas_login.models import GlobalConfig
from faas_login.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests(monkeypatch: pytest.MonkeyPatch) -> None:
    """Force plain output and reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When capsys or Typer's CliRunner swap those streams
    the cached references become stale, so a fresh manager is created on
    next use.
    """
    monkeypatch.setenv("NO_COLOR", "1")
    reset_output()
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove FAAS_LOGIN_* and OPENFAAS_URL so the host environment cannot leak in."""
    for field in GlobalConfig.model_fields:
        monkeypatch.delenv(f"{ENV_PREFIX}{field.upper()}", raising=False)
    monkeypatch.delenv(GATEWAY_ENV_FALLBACK, raising=False)


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point config and data directories at a temporary location."""
    monkeypatch.setattr("faas_login.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return tmp_path


# ---------------------------------------------------------------------------
# Network helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def free_port() -> int:
    """A TCP port on 127.0.0.1 that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner capturing stdout/stderr."""
    from typer.testing import CliRunner

    return CliRunner()
