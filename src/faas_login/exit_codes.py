"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~faas_login.exceptions.FaasLoginError` subclass.
Shell wrappers can inspect the exit code to tell why a login attempt
stopped without parsing stderr.

Example::

    $ faas-login auth --client-id my-id
    $ echo $?
    2   # EXIT_INVALID_USAGE -- --auth-url was missing
"""

EXIT_SUCCESS = 0
"""The flow completed (whether or not a token was found)."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid or missing options."""

EXIT_AUTH_FAILURE = 3
"""The authorization round trip did not finish (e.g. redirect timeout)."""

EXIT_BROWSER_ERROR = 4
"""The default browser could not be launched."""

EXIT_LISTENER_ERROR = 5
"""The local callback listener could not bind its port."""

EXIT_CANCELLED = 130
"""The user interrupted the command with Ctrl-C."""
