"""Default-browser launching, one strategy per host operating-system family.

- :class:`BrowserLauncher` -- abstract base class with a single
  :meth:`~BrowserLauncher.open` operation.
- :class:`UnixBrowserLauncher`, :class:`AppleBrowserLauncher`,
  :class:`WindowsBrowserLauncher` -- shell-invoked ``xdg-open``, ``open``
  and ``start`` respectively.
- :func:`detect_launcher` -- picks the strategy for the running host.

The child process inherits the terminal's stdin/stdout/stderr so launch
errors reported by the opener are visible to the user.
"""

from __future__ import annotations

import logging
import platform
import shlex
import subprocess
from abc import ABC, abstractmethod
from typing import Optional

from faas_login.exceptions import BrowserLaunchError

logger = logging.getLogger(__name__)


class BrowserLauncher(ABC):
    """Abstract base class for browser launch strategies.

    Subclasses provide :attr:`name` and :meth:`command`; :meth:`open` runs
    the command and maps failures to
    :class:`~faas_login.exceptions.BrowserLaunchError`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier of the host family, e.g. ``"unix"``."""
        ...

    @abstractmethod
    def command(self, url: str) -> list[str]:
        """Return the argv that opens *url* in the default browser."""
        ...

    def open(self, url: str) -> None:
        """Open *url* and wait for the opener process to exit.

        Args:
            url: The absolute URL to open.

        Raises:
            BrowserLaunchError: If the opener cannot be started or exits
                with a non-zero status.
        """
        argv = self.command(url)
        logger.debug("Launching browser via %s: %s", self.name, argv)
        try:
            subprocess.run(argv, check=True)
        except subprocess.CalledProcessError as exc:
            raise BrowserLaunchError(
                f"unable to launch browser: {argv[0]} exited with status {exc.returncode}"
            ) from exc
        except OSError as exc:
            raise BrowserLaunchError(f"unable to launch browser: {exc}") from exc


class UnixBrowserLauncher(BrowserLauncher):
    """Linux and other Unix-like hosts: ``xdg-open``."""

    @property
    def name(self) -> str:
        return "unix"

    def command(self, url: str) -> list[str]:
        return ["sh", "-c", f"xdg-open {shlex.quote(url)}"]


class AppleBrowserLauncher(BrowserLauncher):
    """macOS hosts: ``open``."""

    @property
    def name(self) -> str:
        return "apple"

    def command(self, url: str) -> list[str]:
        return ["sh", "-c", f"open {shlex.quote(url)}"]


class WindowsBrowserLauncher(BrowserLauncher):
    """Windows hosts: ``cmd /c start``.

    ``&`` is a command separator for ``cmd``, so it is escaped as ``^&``.
    """

    @property
    def name(self) -> str:
        return "windows"

    def command(self, url: str) -> list[str]:
        escaped = url.replace("&", "^&")
        return ["cmd", "/c", f"start {escaped}"]


def detect_launcher(system: Optional[str] = None) -> BrowserLauncher:
    """Return the launch strategy for the host.

    Args:
        system: Value in the form of :func:`platform.system`; detected
            when ``None``.

    Returns:
        :class:`AppleBrowserLauncher` for ``Darwin``,
        :class:`WindowsBrowserLauncher` for ``Windows``, and
        :class:`UnixBrowserLauncher` for everything else.
    """
    system = system or platform.system()
    if system == "Darwin":
        return AppleBrowserLauncher()
    if system == "Windows":
        return WindowsBrowserLauncher()
    return UnixBrowserLauncher()
