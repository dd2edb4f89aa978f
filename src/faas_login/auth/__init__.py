"""OAuth2 implicit-flow token capture.

Provides:

- :func:`~faas_login.auth.authorize.build_authorize_url` -- the provider
  URL with ``response_type=token`` and the loopback ``redirect_uri``.
- :class:`~faas_login.auth.browser.BrowserLauncher` and
  :func:`~faas_login.auth.browser.detect_launcher` -- per-OS browser launch.
- :class:`~faas_login.auth.callback_server.CallbackServer` -- the two-hop
  fragment capture listener.
- :class:`~faas_login.auth.lifecycle.FlowLifecycleSignal` -- the single-fire
  completion signal.
- :class:`~faas_login.auth.flow.FlowCoordinator` -- runs one login attempt.
"""

from faas_login.auth.authorize import build_authorize_url, redirect_uri_for
from faas_login.auth.browser import (
    AppleBrowserLauncher,
    BrowserLauncher,
    UnixBrowserLauncher,
    WindowsBrowserLauncher,
    detect_launcher,
)
from faas_login.auth.callback_server import CallbackServer, parse_fragment
from faas_login.auth.flow import FlowCoordinator, FlowState
from faas_login.auth.lifecycle import FlowLifecycleSignal

__all__ = [
    "AppleBrowserLauncher",
    "BrowserLauncher",
    "CallbackServer",
    "FlowCoordinator",
    "FlowLifecycleSignal",
    "FlowState",
    "UnixBrowserLauncher",
    "WindowsBrowserLauncher",
    "build_authorize_url",
    "detect_launcher",
    "parse_fragment",
    "redirect_uri_for",
]
