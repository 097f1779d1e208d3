"""
OCM Token Command.

This module provides the command that prints the current tokens, or parts
of them, using the stored credentials.
"""

from datetime import timedelta

import typer

from ocmcli.connection import ConnectionBuilder
from ocmcli.helpers import OCMError, dump_json, exit_with_error
from ocmcli.tokens import split_token

GENERATED_TOKEN_EXPIRY = timedelta(minutes=15)


def token(
    header: bool = typer.Option(False, "--header", help="Print the JSON header."),
    payload: bool = typer.Option(False, "--payload", help="Print the JSON payload."),
    signature: bool = typer.Option(False, "--signature", help="Print the signature."),
    refresh: bool = typer.Option(
        False, "--refresh", help="Print the refresh token instead of the access token."
    ),
    generate: bool = typer.Option(False, "--generate", help="Generate a new token."),
):
    """Uses the stored credentials to generate a token."""
    if sum([header, payload, signature, generate]) > 1:
        exit_with_error(
            "Options '--payload', '--header', '--signature', and '--generate' are mutually exclusive"
        )

    builder = ConnectionBuilder()
    try:
        with builder.build() as connection:
            if generate:
                access_token, refresh_token = connection.tokens(GENERATED_TOKEN_EXPIRY)
            else:
                access_token, refresh_token = connection.tokens()

            selected = refresh_token if refresh else access_token
            if header or payload or signature:
                parts = split_token(selected)
                if header:
                    dump_json(parts[0])
                elif payload:
                    dump_json(parts[1])
                else:
                    typer.echo(selected.rsplit(".", 1)[-1])
            else:
                typer.echo(selected)

            cfg = builder.config
            cfg.access_token = access_token
            cfg.refresh_token = refresh_token
            builder.store.save(cfg)
    except OCMError as e:
        exit_with_error(str(e))
