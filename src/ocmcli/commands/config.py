"""
OCM Configuration Commands.

This module provides the commands that read and change single variables of
the stored configuration, and remove it from the OS keyring.
"""

import typer
from typer.core import TyperGroup

import ocmcli.store
from ocmcli.config import Config, describe_variables
from ocmcli.helpers import NotArmedError, OCMError, exit_with_error, parse_bool
from ocmcli.store import KeyringStore, get_config_store


def _current_store() -> str:
    try:
        return get_config_store().describe()
    except OCMError as e:
        return f"unavailable ({e})"


def _long_help() -> str:
    return (
        "Get or set variables from a configuration file.\n\n"
        "The location of the configuration file is gleaned from the 'OCM_CONFIG' environment "
        "variable. When it is unset, ~/.ocm.json is used if it already exists, otherwise "
        "ocm/ocm.json in the user configuration directory. Set 'OCM_KEYRING' to keep the "
        f"configuration in the OS keyring instead. Currently using: {_current_store()}\n\n"
        "The following variables are supported:\n\n"
        f"\b\n{describe_variables()}"
    )


class ConfigGroup(TyperGroup):
    """Builds the long help when it is shown, since it names the current store."""

    def format_help(self, ctx, formatter):
        self.help = _long_help()
        return super().format_help(ctx, formatter)


config_app = typer.Typer(
    cls=ConfigGroup,
    short_help="get or set configuration variables",
    rich_markup_mode=None,
    no_args_is_help=True,
)

# Variables that are plain strings in the configuration.
STRING_VARIABLES = (
    "access_token",
    "client_id",
    "client_secret",
    "password",
    "refresh_token",
    "token_url",
    "url",
    "user",
    "pager",
)


def _format_value(cfg: Config, variable: str) -> str:
    if variable == "insecure":
        return str(cfg.insecure).lower()
    if variable == "scopes":
        return "[" + " ".join(cfg.scopes or []) + "]"
    return getattr(cfg, variable)


@config_app.command("get")
def get_variable(variable: str = typer.Argument(..., help="Name of the variable.")):
    """Prints the value of a config variable. See 'ocm config --help' for supported config variables."""
    if variable == "keyrings":
        backends = sorted(ocmcli.store.available_backends())
        if not backends:
            typer.echo("No keyrings available", err=True)
        typer.echo("[" + " ".join(backends) + "]")
        return

    if variable not in STRING_VARIABLES and variable not in ("insecure", "scopes"):
        exit_with_error("Unknown setting")

    try:
        cfg = get_config_store().load()
    except OCMError as e:
        exit_with_error(f"Can't load config file: {e}")

    if cfg is None:
        typer.echo("")
        return
    typer.echo(_format_value(cfg, variable))


@config_app.command("set")
def set_variable(
    variable: str = typer.Argument(..., help="Name of the variable."),
    value: str = typer.Argument(..., help="New value."),
):
    """Sets the variable's value."""
    try:
        store = get_config_store()
        cfg = store.load()
        if cfg is None:
            raise NotArmedError()

        if variable == "insecure":
            try:
                cfg.insecure = parse_bool(value)
            except ValueError:
                exit_with_error(f"Failed to set insecure: {value}")
        elif variable == "scopes":
            exit_with_error("Setting scopes is unsupported")
        elif variable in STRING_VARIABLES:
            setattr(cfg, variable, value)
        else:
            exit_with_error("Unknown setting")

        store.save(cfg)
    except OCMError as e:
        exit_with_error(str(e))


@config_app.command("delete", hidden=True)
def delete_config():
    """Deletes the existing configuration from the OS keyring."""
    try:
        store = get_config_store()
        if not isinstance(store, KeyringStore):
            exit_with_error("the configuration isn't stored in a keyring, set 'OCM_KEYRING'")
        store.remove()
    except OCMError as e:
        exit_with_error(f"can't delete config from keyring: {e}")
