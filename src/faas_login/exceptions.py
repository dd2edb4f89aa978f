"""Exception hierarchy for faas-login.

All exceptions inherit from :class:`FaasLoginError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`faas_login.exit_codes`.
The top-level error handler in :func:`faas_login.app.main` catches
``FaasLoginError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    FaasLoginError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- BrowserLaunchError  (exit 4)
    +-- ListenerError       (exit 5)
    +-- ConfigError         (exit 1)
"""

from faas_login.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_BROWSER_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_LISTENER_ERROR,
)


class FaasLoginError(Exception):
    """Base exception for all faas-login errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`faas_login.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(FaasLoginError):
    """Raised for invalid CLI options such as a missing ``--auth-url``."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(FaasLoginError):
    """Raised when the authorization round trip does not finish."""

    exit_code = EXIT_AUTH_FAILURE


class BrowserLaunchError(FaasLoginError):
    """Raised when the browser process cannot be started or exits with failure."""

    exit_code = EXIT_BROWSER_ERROR


class ListenerError(FaasLoginError):
    """Raised when the local callback listener cannot bind its address."""

    exit_code = EXIT_LISTENER_ERROR


class ConfigError(FaasLoginError):
    """Raised for configuration problems (invalid JSON, bad values in the config file)."""

    exit_code = EXIT_GENERIC_FAILURE
