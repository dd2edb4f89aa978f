"""Built-in CLI sub-commands for faas-login.

* :mod:`~faas_login.commands.auth` -- run the OAuth2 implicit flow and
  print a token.
* :mod:`~faas_login.commands.config` -- view and modify saved defaults.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config``) or a plain callback function
registered directly on the root app (for single commands like ``auth``).
"""
