"""Loopback callback listener implementing the two-hop fragment capture.

An implicit-flow provider redirects the browser to
``http://127.0.0.1:<port>/oauth/callback#access_token=...``. Browsers never
send the ``#fragment`` part to the server, so the token is recovered in two
hops:

1. **Page hop** -- ``GET /oauth/callback`` arrives with an empty query. The
   listener answers with :data:`CAPTURE_PAGE`, whose script reads
   ``document.location.hash``, strips the ``#`` and requests
   ``/oauth2/callback?fragment=<encoded hash>``.
2. **Capture hop** -- ``GET /oauth2/callback?fragment=...``. The fragment is
   parsed as a form-encoded query string, the outcome is recorded on the
   :class:`~faas_login.auth.lifecycle.FlowLifecycleSignal`, and the usage
   example (or a "no token" diagnostic) is printed.

The listener binds to ``127.0.0.1`` only. Every connection gets a socket
timeout and request headers are capped, since anything on the local machine
can reach the port while the flow runs.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, parse_qsl, urlsplit

from faas_login.auth.authorize import CALLBACK_HOST, PAGE_PATH
from faas_login.auth.lifecycle import FlowLifecycleSignal
from faas_login.exceptions import ListenerError
from faas_login.models import DEFAULT_LISTEN_PORT, CallbackOutcome
from faas_login.output import debug, notice, print_data, status

logger = logging.getLogger(__name__)

CAPTURE_PATH = "/oauth2/callback"

SOCKET_TIMEOUT = 5.0
"""Per-connection read/write timeout in seconds."""

MAX_HEADER_BYTES = 1 << 20
"""Upper bound on the combined size of request header lines."""

CAPTURE_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>faas-login authorization flow</title>
</head>
<body>
<p id="status">Completing authorization...</p>
<script>
  var fragment = document.location.hash.slice(1);
  var xhttp = new XMLHttpRequest();
  xhttp.onreadystatechange = function() {
    if (this.readyState == 4) {
      document.getElementById("status").textContent =
        "Authorization flow complete. Please close this browser window.";
    }
  };
  xhttp.open("GET", "/oauth2/callback?fragment=" + encodeURIComponent(fragment), true);
  xhttp.send();
</script>
</body>
</html>
"""

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class FragmentParseError(ValueError):
    """The captured fragment is not a valid form-encoded query string."""


def parse_fragment(value: str) -> dict[str, str]:
    """Parse a captured URL fragment such as ``access_token=abc&token_type=Bearer``.

    Only the first value of a repeated key is kept.

    Raises:
        FragmentParseError: On ``;`` separators, malformed percent-escapes,
            or escapes that do not decode as UTF-8.
    """
    if ";" in value:
        raise FragmentParseError("invalid semicolon separator in fragment")
    bad = _BAD_ESCAPE.search(value)
    if bad:
        raise FragmentParseError(
            f"invalid URL escape {value[bad.start():bad.start() + 3]!r} in fragment"
        )
    try:
        pairs = parse_qsl(value, keep_blank_values=True, errors="strict")
    except UnicodeDecodeError as exc:
        raise FragmentParseError(f"fragment is not valid UTF-8: {exc}") from exc

    params: dict[str, str] = {}
    for key, val in pairs:
        params.setdefault(key, val)
    return params


def usage_example(gateway: str, token: str) -> str:
    """Return the ``faas-cli`` command line that uses *token* against *gateway*."""
    return f'./faas-cli list --gateway "{gateway}" --token "{token}"'


class CallbackHandler(BaseHTTPRequestHandler):
    """Serves the capture page and receives the capture request.

    Reads the lifecycle signal and gateway from the owning
    :class:`_LoopbackHTTPServer`; it never shuts the server down itself.
    """

    server: _LoopbackHTTPServer
    timeout = SOCKET_TIMEOUT
    server_version = "faas-login"

    def parse_request(self) -> bool:
        if not super().parse_request():
            return False
        size = sum(len(k) + len(v) + 4 for k, v in self.headers.items())
        if size > MAX_HEADER_BYTES:
            self.send_error(HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE)
            return False
        return True

    def do_GET(self) -> None:  # noqa: N802
        parts = urlsplit(self.path)
        if parts.path not in (PAGE_PATH, CAPTURE_PATH):
            self._send(HTTPStatus.NOT_FOUND)
            return

        try:
            fragment = parse_qs(parts.query, errors="strict").get("fragment", [""])[0]
        except UnicodeDecodeError as exc:
            outcome = _unparsable(f"fragment is not valid UTF-8: {exc}")
            self._record(outcome, HTTPStatus.BAD_REQUEST)
            return

        if fragment:
            self._capture(fragment)
        else:
            self._send(HTTPStatus.OK, CAPTURE_PAGE.encode("utf-8"), "text/html; charset=utf-8")

    def _capture(self, fragment: str) -> None:
        try:
            params = parse_fragment(fragment)
        except FragmentParseError as exc:
            self._record(_unparsable(str(exc)), HTTPStatus.BAD_REQUEST)
            return

        token = params.get("access_token", "")
        outcome = CallbackOutcome(
            token_found=bool(token),
            access_token=token or None,
            error=params.get("error") or None,
            error_description=params.get("error_description") or None,
        )
        self._record(outcome, HTTPStatus.OK)

    def _record(self, outcome: CallbackOutcome, http_status: HTTPStatus) -> None:
        signal = self.server.signal
        if signal.is_done():
            debug("Ignoring repeated callback; the flow already completed.")
            self._send(HTTPStatus.OK)
            return

        if signal.complete(outcome):
            _report(outcome, self.server.gateway, parse_failed=http_status != HTTPStatus.OK)
        self._send(http_status)

    def _send(
        self,
        status: HTTPStatus,
        body: bytes = b"",
        content_type: Optional[str] = None,
    ) -> None:
        self.send_response(status)
        if content_type:
            self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        if body:
            self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def _unparsable(reason: str) -> CallbackOutcome:
    return CallbackOutcome(token_found=False, error=reason)


def _report(outcome: CallbackOutcome, gateway: str, parse_failed: bool = False) -> None:
    if outcome.token_found and outcome.access_token:
        status("Access token received. Example:")
        print_data(usage_example(gateway, outcome.access_token))
        return

    if parse_failed:
        notice(f"Unable to parse fragment response from browser redirect: {outcome.error}")
        return

    notice(
        "Unable to detect a valid access_token in URL fragment. "
        "Check your credentials or contact your administrator."
    )
    if outcome.error:
        detail = outcome.error
        if outcome.error_description:
            detail += f" - {outcome.error_description}"
        status(f"Identity provider returned: {detail}")


class _LoopbackHTTPServer(ThreadingHTTPServer):
    """Threaded HTTP server that keeps track of its handler threads."""

    daemon_threads = True
    block_on_close = False

    def __init__(
        self,
        server_address: tuple[str, int],
        signal: FlowLifecycleSignal,
        gateway: str,
    ) -> None:
        self.signal = signal
        self.gateway = gateway
        self._handler_threads: list[threading.Thread] = []
        self._handler_lock = threading.Lock()
        super().__init__(server_address, CallbackHandler)

    def process_request(self, request: Any, client_address: Any) -> None:
        thread = threading.Thread(
            target=self.process_request_thread,
            args=(request, client_address),
            daemon=True,
        )
        with self._handler_lock:
            self._handler_threads = [t for t in self._handler_threads if t.is_alive()]
            self._handler_threads.append(thread)
        thread.start()

    def join_handlers(self, deadline: float) -> bool:
        """Wait for in-flight handlers until *deadline* (``time.monotonic``).

        Returns:
            ``True`` if every handler finished in time.
        """
        with self._handler_lock:
            threads = list(self._handler_threads)
        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))
        return not any(t.is_alive() for t in threads)


class CallbackServer:
    """Single-shot loopback listener for one login attempt.

    The flow coordinator owns its lifecycle: :meth:`start` binds and serves
    on a background thread, :meth:`close` stops accepting, waits a bounded
    grace period for in-flight requests, and releases the port.

    Args:
        signal: Lifecycle signal fired by the capture hop.
        gateway: Gateway URL embedded in the printed usage example.
        port: Port to bind; ``0`` picks an ephemeral port.
        host: Bind address. Defaults to the IPv4 loopback address.
    """

    def __init__(
        self,
        signal: FlowLifecycleSignal,
        gateway: str,
        port: int = DEFAULT_LISTEN_PORT,
        host: str = CALLBACK_HOST,
    ) -> None:
        self.signal = signal
        self.gateway = gateway
        self._requested = (host, port)
        self._httpd: Optional[_LoopbackHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._httpd is not None

    @property
    def address(self) -> tuple[str, int]:
        """The bound ``(host, port)``, or the requested one before :meth:`start`."""
        if self._httpd is None:
            return self._requested
        host, port = self._httpd.server_address[:2]
        return str(host), int(port)

    @property
    def port(self) -> int:
        return self.address[1]

    def start(self) -> None:
        """Bind the listener and serve on a background thread.

        Raises:
            ListenerError: If the address cannot be bound (e.g. the port is
                already in use).
        """
        if self._httpd is not None:
            return
        host, port = self._requested
        try:
            self._httpd = _LoopbackHTTPServer((host, port), self.signal, self.gateway)
        except OSError as exc:
            raise ListenerError(
                f"unable to start local token server on {host}:{port}: {exc}"
            ) from exc

        self._thread = threading.Thread(
            target=self._httpd.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="faas-login-callback",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Callback listener bound to %s:%d", *self.address)

    def close(self, grace_period: float = 5.0) -> None:
        """Stop the listener, waiting at most *grace_period* seconds for in-flight requests."""
        httpd = self._httpd
        if httpd is None:
            return
        deadline = time.monotonic() + grace_period
        httpd.shutdown()
        if self._thread is not None:
            self._thread.join(max(0.0, deadline - time.monotonic()))
        if not httpd.join_handlers(deadline):
            logger.debug("Callback handlers still running after %.1fs grace period", grace_period)
        httpd.server_close()
        self._httpd = None
        self._thread = None

    def __enter__(self) -> CallbackServer:
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
