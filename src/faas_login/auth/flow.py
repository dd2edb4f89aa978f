"""Flow coordinator -- start listener, redirect user, wait for one callback, shut down.

:class:`FlowCoordinator` walks one login attempt through
``IDLE -> SERVER_STARTING -> AWAITING_REDIRECT -> COMPLETED | ABORTED``.
It owns both the :class:`~faas_login.auth.callback_server.CallbackServer`
and the :class:`~faas_login.auth.lifecycle.FlowLifecycleSignal`; the
listener is shut down strictly after the signal fires (or the flow aborts),
with a bounded grace period.

A flow that completes without a token is still a completed flow: the
coordinator returns the :class:`~faas_login.models.CallbackOutcome` and
lets the caller report it.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

from faas_login.auth.authorize import build_authorize_url
from faas_login.auth.browser import BrowserLauncher, detect_launcher
from faas_login.auth.callback_server import CallbackServer
from faas_login.auth.lifecycle import FlowLifecycleSignal
from faas_login.exceptions import AuthError, BrowserLaunchError, ListenerError
from faas_login.models import AuthorizeURL, AuthRequest, CallbackOutcome
from faas_login.output import debug, status, suggest

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = 5.0
"""Seconds the listener waits for in-flight requests when shutting down."""


class FlowState(str, enum.Enum):
    """Enumeration of :class:`FlowCoordinator` states.

    A login attempt moves ``IDLE -> SERVER_STARTING -> AWAITING_REDIRECT``
    and ends in ``COMPLETED`` or ``ABORTED``.
    """

    IDLE = "idle"
    SERVER_STARTING = "server_starting"
    AWAITING_REDIRECT = "awaiting_redirect"
    COMPLETED = "completed"
    ABORTED = "aborted"


ServerFactory = Callable[[FlowLifecycleSignal, str, int], CallbackServer]


def _default_server_factory(signal: FlowLifecycleSignal, gateway: str, port: int) -> CallbackServer:
    return CallbackServer(signal, gateway, port=port)


class FlowCoordinator:
    """Runs a single implicit-flow login attempt.

    Args:
        request: The validated, immutable login request.
        gateway: Gateway URL for the printed usage example.
        launcher: Browser strategy; detected from the host when ``None``.
        timeout: Seconds to wait for the redirect. ``None`` waits until
            the user completes the browser interaction or presses Ctrl-C.
        grace_period: Seconds allowed for in-flight requests at shutdown.
        server_factory: Builds the listener; tests swap it to observe or
            pre-bind the server.

    Example::

        request = AuthRequest.create(auth_url=..., client_id="my-id")
        outcome = FlowCoordinator(request, gateway="http://127.0.0.1:8080").run()
    """

    def __init__(
        self,
        request: AuthRequest,
        gateway: str,
        launcher: Optional[BrowserLauncher] = None,
        timeout: Optional[float] = None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        server_factory: ServerFactory = _default_server_factory,
    ) -> None:
        self.request = request
        self.gateway = gateway
        self.timeout = timeout
        self.grace_period = grace_period
        self.signal = FlowLifecycleSignal()
        self._launcher = launcher
        self._server_factory = server_factory
        self._state = FlowState.IDLE
        self.authorize_url: Optional[AuthorizeURL] = None
        self.server: Optional[CallbackServer] = None

    @property
    def state(self) -> FlowState:
        return self._state

    def _transition(self, state: FlowState) -> None:
        logger.debug("Flow state %s -> %s", self._state.value, state.value)
        self._state = state

    def run(self) -> CallbackOutcome:
        """Run the flow to completion.

        Returns:
            The outcome recorded by the capture hop. ``token_found`` may be
            ``False``; that is a completed flow, not an error.

        Raises:
            ListenerError: If the callback listener cannot bind its port.
            BrowserLaunchError: If the browser cannot be launched.
            AuthError: If ``timeout`` elapses before the redirect arrives.
            RuntimeError: If :meth:`run` is called twice.
        """
        if self._state is not FlowState.IDLE:
            raise RuntimeError(f"flow already ran (state: {self._state.value})")

        self._transition(FlowState.SERVER_STARTING)
        self.authorize_url = build_authorize_url(self.request)
        self.server = self._server_factory(self.signal, self.gateway, self.request.redirect_port)

        try:
            self.server.start()
        except ListenerError:
            self._transition(FlowState.ABORTED)
            raise

        try:
            status(f"Starting local token server on port {self.server.port}")
            self._open_browser(str(self.authorize_url))
            self._transition(FlowState.AWAITING_REDIRECT)
            debug(f"Waiting for redirect to {self.authorize_url.redirect_uri}")

            if not self.signal.wait(self.timeout):
                self._transition(FlowState.ABORTED)
                raise AuthError(
                    f"timed out waiting for redirect to {self.authorize_url.redirect_uri} "
                    f"after {self.timeout:g}s"
                )
        except BaseException:
            if self._state is not FlowState.ABORTED:
                self._transition(FlowState.ABORTED)
            raise
        finally:
            self.server.close(self.grace_period)

        self._transition(FlowState.COMPLETED)
        outcome = self.signal.outcome
        assert outcome is not None  # the signal only fires with an outcome
        return outcome

    def _open_browser(self, url: str) -> None:
        if not self.request.launch_browser:
            status(f"Open this URL in your browser: {url}")
            return

        status(f"Launching browser: {url}")
        launcher = self._launcher or detect_launcher()
        try:
            launcher.open(url)
        except BrowserLaunchError:
            suggest("Open the URL above manually, or re-run with --no-launch-browser.")
            raise
