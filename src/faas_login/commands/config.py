"""Config commands -- view and modify saved defaults.

Provides the ``faas-login config`` sub-command group for reading,
updating, and resetting the user's global configuration file
(:class:`~faas_login.models.GlobalConfig`). Saved values are the lowest
precedence defaults for ``faas-login auth``; environment variables and
flags override them.
"""

from __future__ import annotations

import typer

from faas_login.output import error, info, print_table, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the saved configuration.

    Example::

        faas-login config show
    """
    from faas_login.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    rows = [
        [key, "" if value is None else str(value)]
        for key, value in config.model_dump(mode="json").items()
    ]
    print_table(["Key", "Value"], rows, title="faas-login config")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'auth_url' or 'listen_port'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the field's type (``listen_port`` to int,
    ``launch_browser`` to bool, ...) by validating the updated config
    against :class:`~faas_login.models.GlobalConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key is unknown or the value fails
            validation.

    Example::

        faas-login config set auth_url https://idp.example.com/authorize
        faas-login config set listen_port 31112
        faas-login config set launch_browser false
    """
    from faas_login.config import load_global_config, save_global_config
    from faas_login.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    if key not in data:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    data[key] = value
    try:
        new_config = GlobalConfig.model_validate(data)
    except Exception as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {getattr(new_config, key)}")


@config_app.command("unset")
def config_unset(
    key: str = typer.Argument(help="Config key to restore to its default."),
) -> None:
    """Restore a single configuration value to its default."""
    from faas_login.config import load_global_config, save_global_config
    from faas_login.models import GlobalConfig

    field = GlobalConfig.model_fields.get(key)
    if field is None:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    config = load_global_config()
    default = field.get_default(call_default_factory=True)
    save_global_config(config.model_copy(update={key: default}))
    success(f"Unset {key}")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Raises:
        typer.Exit: If the user declines confirmation.

    Example::

        faas-login config reset
        faas-login --force config reset
    """
    from faas_login.config import save_global_config
    from faas_login.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
