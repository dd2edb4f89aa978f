"""Auth command -- obtain a token for an OpenFaaS gateway.

Runs the OAuth2 implicit flow: opens the identity provider's authorize
endpoint in the browser, captures the token from the redirect on a local
listener, and prints a ``faas-cli`` example that uses it.

Example::

    faas-login auth --client-id my-id --auth-url https://auth0.com/authorize \\
        --scope "oidc profile" --audience my-id
"""

from __future__ import annotations

from typing import Optional

import typer

from faas_login.exceptions import FaasLoginError
from faas_login.output import error, suggest


def auth_command(
    auth_url: Optional[str] = typer.Option(
        None, "--auth-url", help="OAuth2 Authorize URL i.e. http://idp/oauth/authorize"
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="OAuth2 client_id"
    ),
    audience: Optional[str] = typer.Option(
        None, "--audience", help="OAuth2 audience"
    ),
    scope: Optional[str] = typer.Option(
        None, "--scope", help="OAuth2 scope, e.g. \"openid profile\""
    ),
    listen_port: Optional[int] = typer.Option(
        None, "--listen-port", help="Local port for receiving the OAuth2 redirect [default: 31111]"
    ),
    launch_browser: Optional[bool] = typer.Option(
        None,
        "--launch-browser/--no-launch-browser",
        help="Launch browser for OAuth2 redirect [default: launch]",
    ),
    gateway: Optional[str] = typer.Option(
        None, "--gateway", "-g", help="Gateway URL starting with http(s)://"
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        min=1.0,
        help="Seconds to wait for the browser redirect (default: wait indefinitely)",
    ),
) -> None:
    """Obtain a token for your OpenFaaS gateway.

    Option values fall back to ``FAAS_LOGIN_*`` environment variables and
    then to the saved config (see ``faas-login config``). The command
    exits 0 once the browser redirect has been handled, whether or not it
    carried an access token.

    Raises:
        typer.Exit: With the error's exit code on invalid options (2),
            redirect timeout (3), browser launch failure (4), or a port
            that cannot be bound (5).
    """
    from faas_login.auth import FlowCoordinator
    from faas_login.config import resolve_settings
    from faas_login.models import AuthRequest

    try:
        settings = resolve_settings(
            auth_url=auth_url,
            client_id=client_id,
            audience=audience,
            scope=scope,
            listen_port=listen_port,
            launch_browser=launch_browser,
            gateway=gateway,
            timeout=timeout,
        )
        request = AuthRequest.create(
            auth_url=settings.auth_url,
            client_id=settings.client_id,
            audience=settings.audience,
            scope=settings.scope,
            redirect_port=settings.listen_port,
            launch_browser=settings.launch_browser,
        )
        outcome = FlowCoordinator(
            request, gateway=settings.gateway, timeout=settings.timeout
        ).run()
    except FaasLoginError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not outcome.token_found:
        suggest("Check --client-id, --audience and --scope, then run faas-login auth again.")
