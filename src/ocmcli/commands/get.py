"""
OCM Request Commands.

This module provides the generic GET and POST commands and the whoami
command. Each sends an authenticated request and prints the JSON response.
"""

import json
from typing import Any, Callable, List, Optional

import httpx
import typer

from ocmcli.connection import Connection, ConnectionBuilder, save_tokens
from ocmcli.helpers import OCMError, dump_json, exit_with_error, parse_pairs
from ocmcli.ui import spinner
from ocmcli.urls import expand, resources

CURRENT_ACCOUNT_PATH = "/api/accounts_mgmt/v1/current_account"


def _complete_resource(incomplete: str) -> List[str]:
    return [name for name in resources() if name.startswith(incomplete)]


def _expand_path(resource: List[str]) -> str:
    try:
        return expand(resource)
    except OCMError as e:
        exit_with_error(f"Could not create URI: {e}")


def _send_request(send: Callable[[Connection], httpx.Response], single: bool = False) -> None:
    """Send a request with the stored credentials and print the response.

    Error responses are printed to stderr and fail the command, after the
    renewed tokens have been saved.
    """
    builder = ConnectionBuilder()
    try:
        with builder.build() as connection:
            with spinner("Sending request..."):
                response = send(connection)
            failed = response.status_code >= 400
            dump_json(response.content, single=single, err=failed)
            save_tokens(builder.store, builder.config, connection)
    except OCMError as e:
        exit_with_error(str(e))

    if failed:
        raise typer.Exit(1)


def _read_body(body: Optional[typer.FileText]) -> Any:
    if body is None:
        return None
    text = body.read()
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError as e:
        exit_with_error(f"Can't read body: {e}")


def get(
    resource: List[str] = typer.Argument(
        ...,
        help="Resource alias or path, and an optional ID.",
        autocompletion=_complete_resource,
    ),
    parameter: Optional[List[str]] = typer.Option(
        None,
        "--parameter",
        help="Query parameters to add to the request, as NAME=VALUE. Can be repeated.",
    ),
    header: Optional[List[str]] = typer.Option(
        None,
        "--header",
        help="Headers to add to the request, as NAME=VALUE. Can be repeated.",
    ),
    single: bool = typer.Option(False, "--single", help="Return the output as a single line."),
):
    """Send a GET request to the given path."""
    path = _expand_path(resource)
    params = parse_pairs(parameter, "--parameter")
    headers = parse_pairs(header, "--header")

    _send_request(lambda c: c.get(path, params=params, headers=headers), single=single)


def post(
    resource: List[str] = typer.Argument(
        ...,
        help="Resource alias or path, and an optional ID.",
        autocompletion=_complete_resource,
    ),
    body: Optional[typer.FileText] = typer.Option(
        None,
        "--body",
        help="Name of the file containing the JSON request body. Use '-' to read it from stdin.",
    ),
    parameter: Optional[List[str]] = typer.Option(
        None,
        "--parameter",
        help="Query parameters to add to the request, as NAME=VALUE. Can be repeated.",
    ),
    header: Optional[List[str]] = typer.Option(
        None,
        "--header",
        help="Headers to add to the request, as NAME=VALUE. Can be repeated.",
    ),
):
    """Send a POST request to the given path."""
    path = _expand_path(resource)
    params = parse_pairs(parameter, "--parameter")
    headers = parse_pairs(header, "--header")
    payload = _read_body(body)

    _send_request(lambda c: c.post(path, body=payload, params=params, headers=headers))


def whoami():
    """Prints user information."""
    builder = ConnectionBuilder()
    try:
        with builder.build() as connection:
            response = connection.get(CURRENT_ACCOUNT_PATH)
            dump_json(response.content, err=response.status_code >= 400)
            save_tokens(builder.store, builder.config, connection)
    except OCMError as e:
        exit_with_error(f"Failed to create OCM connection: {e}")
