"""faas-login -- obtain an OpenFaaS gateway token through the OAuth2 implicit flow.

The ``auth`` command opens the identity provider's authorize endpoint in
the user's browser, receives the redirect on a short-lived loopback
listener, recovers the access token from the URL fragment, and prints a
ready-to-run ``faas-cli`` example embedding it.

Typical workflow::

    faas-login auth --auth-url https://idp.example.com/authorize \\
        --client-id my-id --audience my-id --scope "openid profile"

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    auth: Authorize URL builder, browser launcher, callback server and
        flow coordinator.
"""

__version__ = "0.1.0"
