# Copyright (c) 2025 Mahmood Khordoo
#
# This software is licensed under the MIT License.
# See the LICENSE file in the root directory for details.

"""
OCM Command Line Interface.

This module provides the main CLI interface for OCM, a client for the
OpenShift Cluster Manager API. It logs users in against Red Hat SSO, keeps
their tokens up to date and sends authenticated requests.

Main Commands:
    login: Authenticate and save the credentials
    logout: Remove the credentials from the configuration
    token: Print the current access or refresh token
    config: Configuration management (get, set, delete)
    get: Send a GET request to the API
    post: Send a POST request to the API
    whoami: Print the current account
"""

import typer

from ocmcli import __version__
from ocmcli.commands import (
    config_app,
    get,
    login,
    logout,
    post,
    token,
    whoami,
)
from ocmcli.logging import setup_logging


app = typer.Typer(no_args_is_help=True, help="Command line tool for api.openshift.com.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode."),
    version: bool = typer.Option(
        False, "--version", help="Print the version and exit.", callback=_version_callback, is_eager=True
    ),
):
    """Command line tool for api.openshift.com."""
    setup_logging(debug)


# Register commands from modules
app.command()(login)
app.command()(logout)
app.command()(token)
app.command()(get)
app.command()(post)
app.command()(whoami)
app.add_typer(config_app, name="config")


if __name__ == "__main__":
    app()
