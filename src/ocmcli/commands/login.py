"""
OCM Login Command.

This module provides the command that authenticates against Red Hat SSO and
saves the resulting tokens to the config file or keyring.
"""

import os
from typing import List, Optional

import typer

from ocmcli.config import Config
from ocmcli.connection import Connection
from ocmcli.helpers import OCMError, TokenParseError, exit_with_error
from ocmcli.store import get_config_store, keyring_name, validate_backend
from ocmcli.tokens import TokenShape, TokenRole, classify, parse_claims, token_role, token_type
from ocmcli.ui import render_status, spinner
from ocmcli.urls import (
    DEFAULT_CLIENT_ID,
    DEFAULT_SCOPES,
    DEFAULT_TOKEN_URL,
    DEFAULT_URL,
    OFFLINE_TOKEN_PAGE,
    URL_ENV_VAR,
    resolve_gateway_url,
    valid_url_aliases,
)


def place_token(cfg: Config, token: str) -> None:
    """Store a token in the slot of the configuration that matches its type.

    Encrypted tokens can't be introspected and are assumed to be refresh tokens.

    Raises:
        TokenParseError: If the token can't be parsed or has an unknown type
    """
    if classify(token) is TokenShape.ENCRYPTED:
        cfg.access_token = ""
        cfg.refresh_token = token
        return

    try:
        claims = parse_claims(token)
    except TokenParseError as e:
        raise TokenParseError(f"Can't parse token '{token}': {e}") from e
    try:
        typ = token_type(claims)
    except TokenParseError as e:
        raise TokenParseError(f"Can't extract type from 'typ' claim of token '{token}': {e}") from e

    role = token_role(typ)
    if role is TokenRole.ACCESS:
        cfg.access_token = token
        cfg.refresh_token = ""
    elif role is TokenRole.REFRESH:
        cfg.access_token = ""
        cfg.refresh_token = token
    else:
        raise TokenParseError(f"Don't know how to handle token type '{typ}' in token '{token}'")


def login(
    token_url: str = typer.Option(
        "", "--token-url", help=f"OpenID token URL. The default value is '{DEFAULT_TOKEN_URL}'."
    ),
    client_id: str = typer.Option(
        "", "--client-id", help=f"OpenID client identifier. The default value is '{DEFAULT_CLIENT_ID}'."
    ),
    client_secret: str = typer.Option("", "--client-secret", help="OpenID client secret."),
    scopes: Optional[List[str]] = typer.Option(
        None,
        "--scope",
        help="OpenID scope. If this option is used it will replace completely the default "
        "scopes. Can be repeated multiple times to specify multiple scopes.",
    ),
    url: str = typer.Option(
        "",
        "--url",
        help="URL of the OCM API gateway. If not provided, will reuse the URL from the "
        f"configuration file or {DEFAULT_URL} as a last resort. The value should be a "
        f"complete URL or a valid URL alias: {', '.join(valid_url_aliases())}",
    ),
    token: str = typer.Option("", "--token", help="Access or refresh token."),
    user: str = typer.Option("", "--user", help="User name."),
    password: str = typer.Option("", "--password", help="User password."),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        help="Enables insecure communication with the server. This disables verification "
        "of TLS certificates and host names.",
    ),
    persistent: bool = typer.Option(
        False,
        "--persistent",
        help="By default the tool doesn't persistently store the user name and password, so "
        "when the refresh token expires the user will have to log in again. If this option "
        "is provided then the user name and password will be stored persistently, in clear "
        "text, which is potentially unsafe.",
    ),
):
    """
    Log in, saving the credentials to the configuration file.

    The recommended way is using '--token', which you can obtain at the
    offline token page of the OpenShift console.
    """
    # Fail fast if OCM_KEYRING is set to a backend that doesn't exist
    keyring = keyring_name()
    if keyring:
        try:
            validate_backend(keyring)
        except OCMError as e:
            exit_with_error(str(e))

    have_password = user != "" and password != ""
    have_client_creds = client_id != "" and client_secret != ""
    have_token = token != ""
    if not have_password and not have_client_creds and not have_token:
        typer.echo(
            "In order to log in it is mandatory to use '--token', '--user' and "
            "'--password', or '--client-id' and '--client-secret'.\n"
            f"You can obtain a token at: {OFFLINE_TOKEN_PAGE} .\n"
            "See 'ocm login --help' for full help.",
            err=True,
        )
        raise typer.Exit(1)

    if have_password:
        render_status(
            "Authenticating with a user name and password is deprecated. To avoid this "
            f"warning go to '{OFFLINE_TOKEN_PAGE}' to obtain your offline access token "
            "and then login using the '--token' option.",
            level="warning",
        )

    try:
        store = get_config_store()
        cfg = store.load()
        if cfg is None:
            cfg = Config()

        if have_token:
            place_token(cfg, token)

        gateway_url = resolve_gateway_url(url, cfg)
    except OCMError as e:
        exit_with_error(str(e))

    override = os.environ.get(URL_ENV_VAR, "")
    if override:
        render_status(
            f"the `{URL_ENV_VAR}` environment variable is set, but is not used for the login "
            "command. The `ocm login` command will only use the explicitly set flag's url, "
            f"which is set as {gateway_url}",
            level="warning",
        )

    # Update the configuration with the values given in the command line
    cfg.token_url = token_url or DEFAULT_TOKEN_URL
    cfg.client_id = client_id or DEFAULT_CLIENT_ID
    cfg.client_secret = client_secret
    cfg.scopes = list(scopes) if scopes else list(DEFAULT_SCOPES)
    cfg.url = gateway_url
    cfg.user = user
    cfg.password = password
    cfg.insecure = insecure

    # Get tokens to verify that the credentials are correct
    try:
        with Connection.from_config(cfg) as connection:
            with spinner("Logging in..."):
                access_token, refresh_token = connection.tokens()
    except OCMError as e:
        exit_with_error(f"Can't get token: {e}")

    cfg.access_token = access_token
    cfg.refresh_token = refresh_token
    if not persistent:
        cfg.user = ""
        cfg.password = ""

    try:
        store.save(cfg)
    except OCMError as e:
        exit_with_error(f"can't save config: {e}")
