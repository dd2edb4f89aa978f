"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for faas-login:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.faas-login/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~faas_login.models.GlobalConfig`
  JSON file storing defaults for the ``auth`` options (gateway, authorize
  URL, client id, listen port, ...).
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, and the global config into the effective
  settings for one login attempt.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from faas_login.exceptions import ConfigError
from faas_login.models import GlobalConfig

_APP_NAME = "faas-login"
_CONFIG_FILENAME = "config.json"

ENV_PREFIX = "FAAS_LOGIN_"
"""Prefix of the environment variables read by :func:`resolve_settings`."""

GATEWAY_ENV_FALLBACK = "OPENFAAS_URL"
"""Gateway variable shared with ``faas-cli``; consulted after ``FAAS_LOGIN_GATEWAY``."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/faas-login/`` (default ``~/.config/faas-login/``).
    On macOS/Windows: ``~/.faas-login/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/faas-login/`` (default ``~/.local/share/faas-login/``).
    On macOS/Windows: ``~/.faas-login/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~faas_login.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_overrides() -> dict[str, Any]:
    """Collect ``FAAS_LOGIN_*`` overrides (plus ``OPENFAAS_URL``) from the environment."""
    overrides: dict[str, Any] = {}
    for field in GlobalConfig.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{field.upper()}")
        if value:
            overrides[field] = value
    if "gateway" not in overrides and os.environ.get(GATEWAY_ENV_FALLBACK):
        overrides["gateway"] = os.environ[GATEWAY_ENV_FALLBACK]
    return overrides


def resolve_settings(**cli_values: Any) -> GlobalConfig:
    """Resolve the effective ``auth`` settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (keyword arguments whose value is not ``None``)
        2. Environment variables (``FAAS_LOGIN_AUTH_URL``,
           ``FAAS_LOGIN_CLIENT_ID``, ``FAAS_LOGIN_GATEWAY``, ...; the gateway
           also falls back to ``OPENFAAS_URL``)
        3. User config (``~/.config/faas-login/config.json``)
        4. Defaults

    Args:
        **cli_values: Values from the command line keyed by
            :class:`~faas_login.models.GlobalConfig` field name. ``None``
            means "not given".

    Returns:
        A new :class:`~faas_login.models.GlobalConfig` holding the merged
        settings.

    Raises:
        ConfigError: If the config file is invalid, a CLI key is unknown,
            or an environment value cannot be coerced (e.g. a non-numeric
            ``FAAS_LOGIN_LISTEN_PORT``).
    """
    unknown = set(cli_values) - set(GlobalConfig.model_fields)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

    data = load_global_config().model_dump()
    data.update(_env_overrides())
    data.update({k: v for k, v in cli_values.items() if v is not None})

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
