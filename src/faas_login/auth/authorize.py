"""Authorize URL construction for the OAuth2 implicit flow.

Builds the URL the browser is sent to: the provider's authorize endpoint
with ``response_type=token``, the client id, fresh ``state``/``nonce``
values, and a ``redirect_uri`` pointing at the loopback callback listener.
"""

from __future__ import annotations

import secrets
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from faas_login.models import AuthorizeURL, AuthRequest

CALLBACK_HOST = "127.0.0.1"
PAGE_PATH = "/oauth/callback"

_FLOW_PARAMS = (
    "client_id",
    "state",
    "nonce",
    "response_type",
    "scope",
    "audience",
    "redirect_uri",
)


def redirect_uri_for(port: int) -> str:
    """Return the redirect URI registered with the provider for *port*."""
    return f"http://{CALLBACK_HOST}:{port}{PAGE_PATH}"


def _new_flow_value() -> str:
    return secrets.token_urlsafe(16)


def build_authorize_url(request: AuthRequest) -> AuthorizeURL:
    """Build the authorize URL for one login attempt.

    Query parameters already present on ``request.auth_url`` are kept,
    except the flow parameters set here, which always appear exactly once.
    ``scope`` and ``audience`` are forwarded verbatim, even when empty.

    Args:
        request: The validated login request.

    Returns:
        An :class:`~faas_login.models.AuthorizeURL` with freshly generated
        ``state`` and ``nonce``.

    Raises:
        ValueError: If ``request.auth_url`` cannot be split into URL parts.
            :class:`~faas_login.models.AuthRequest` validation rules this out.
    """
    parts = urlsplit(request.auth_url)
    state = _new_flow_value()
    nonce = _new_flow_value()
    redirect_uri = redirect_uri_for(request.redirect_port)

    query = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if k not in _FLOW_PARAMS
    ]
    query.extend(
        [
            ("client_id", request.client_id),
            ("state", state),
            ("nonce", nonce),
            ("response_type", "token"),
            ("scope", request.scope),
            ("audience", request.audience),
            ("redirect_uri", redirect_uri),
        ]
    )

    url = urlunsplit(
        (parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment)
    )
    return AuthorizeURL(url=url, state=state, nonce=nonce, redirect_uri=redirect_uri)
