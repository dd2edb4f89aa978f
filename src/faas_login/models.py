"""Canonical Pydantic models shared across all faas-login modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`GlobalConfig`.

**Flow models** -- built once per ``auth`` invocation and passed explicitly
between the flow components:
    :class:`AuthRequest`, :class:`AuthorizeURL`, and :class:`CallbackOutcome`.

All models use Pydantic v2. The flow models are frozen so that no component
can mutate a value another component already holds.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from faas_login.exceptions import InvalidUsageError


DEFAULT_GATEWAY = "http://127.0.0.1:8080"
DEFAULT_LISTEN_PORT = 31111


# --- Configuration ---


class GlobalConfig(BaseModel):
    """User-wide defaults persisted at ``~/.config/faas-login/config.json``.

    Loaded and saved by :func:`~faas_login.config.load_global_config` and
    :func:`~faas_login.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or
    CLI flags. See :func:`~faas_login.config.resolve_settings` for the full
    precedence chain.
    """

    gateway: str = DEFAULT_GATEWAY
    auth_url: Optional[str] = None
    client_id: Optional[str] = None
    audience: str = ""
    scope: str = ""
    listen_port: int = DEFAULT_LISTEN_PORT
    launch_browser: bool = True
    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the browser redirect; unbounded when unset",
    )


# --- Flow values ---


class AuthRequest(BaseModel):
    """Validated inputs for one implicit-flow login attempt.

    Constructed once from the resolved settings and handed by reference to
    every flow component. Use :meth:`create` from command code so that
    validation failures surface as :class:`~faas_login.exceptions.InvalidUsageError`
    naming the offending flag.

    Example::

        AuthRequest.create(
            auth_url="https://idp.example.com/authorize",
            client_id="my-id",
            scope="openid profile",
        )
    """

    model_config = ConfigDict(frozen=True)

    auth_url: str
    client_id: str
    audience: str = ""
    scope: str = ""
    redirect_port: int = Field(default=DEFAULT_LISTEN_PORT)
    launch_browser: bool = True

    @field_validator("auth_url")
    @classmethod
    def _check_auth_url(cls, value: str) -> str:
        if not value:
            raise ValueError(
                "--auth-url is required and must be a valid OIDC /authorize URL"
            )
        try:
            parts = urlsplit(value)
        except ValueError as exc:
            raise ValueError(f"--auth-url is an invalid URL: {exc}") from exc
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"--auth-url is an invalid URL: {value}")
        return value

    @field_validator("client_id")
    @classmethod
    def _check_client_id(cls, value: str) -> str:
        if not value:
            raise ValueError("--client-id is required")
        return value

    @field_validator("redirect_port")
    @classmethod
    def _check_redirect_port(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError(f"--listen-port must be between 1 and 65535, got {value}")
        return value

    @classmethod
    def create(
        cls,
        auth_url: Optional[str],
        client_id: Optional[str],
        audience: str = "",
        scope: str = "",
        redirect_port: int = DEFAULT_LISTEN_PORT,
        launch_browser: bool = True,
    ) -> AuthRequest:
        """Validate the options and build a request.

        Args:
            auth_url: Identity provider authorize endpoint.
            client_id: OAuth2 client identifier.
            audience: Forwarded verbatim as the ``audience`` parameter.
            scope: Forwarded verbatim as the ``scope`` parameter.
            redirect_port: Local port the callback listener binds.
            launch_browser: Whether to open the browser automatically.

        Returns:
            The frozen request.

        Raises:
            InvalidUsageError: With the first validation message, e.g.
                ``--client-id is required``.
        """
        try:
            return cls(
                auth_url=auth_url or "",
                client_id=client_id or "",
                audience=audience,
                scope=scope,
                redirect_port=redirect_port,
                launch_browser=launch_browser,
            )
        except ValidationError as exc:
            raise InvalidUsageError(_first_error_message(exc)) from None


class AuthorizeURL(BaseModel):
    """The provider URL the browser is sent to, plus the per-flow values in it."""

    model_config = ConfigDict(frozen=True)

    url: str
    state: str
    nonce: str
    redirect_uri: str

    def __str__(self) -> str:
        return self.url


class CallbackOutcome(BaseModel):
    """Result recorded by the capture hop, exactly once per flow.

    ``token_found`` is ``False`` when the fragment carried no
    ``access_token`` (for instance ``error=access_denied``) or could not be
    parsed; ``error`` then holds the provider error code or the parse
    diagnostic.
    """

    model_config = ConfigDict(frozen=True)

    token_found: bool
    access_token: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


def _first_error_message(exc: ValidationError) -> str:
    """Return the message of the first error without pydantic's prefix."""
    err = exc.errors()[0]
    ctx = err.get("ctx") or {}
    if "error" in ctx:
        return str(ctx["error"])
    field = ".".join(str(p) for p in err.get("loc", ()))
    return f"{field}: {err.get('msg', 'invalid value')}"
