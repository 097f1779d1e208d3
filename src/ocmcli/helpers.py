"""
OCM Shared Utility Functions.

This module contains the exception types and small helpers used across
multiple CLI commands and modules to avoid circular imports.
"""

import json
from typing import Any, Union

import typer


class OCMError(Exception):
    """Base class for errors reported to the user as a failed command."""
    pass


class ConfigIOError(OCMError):
    """Raised when the config file or keyring entry can't be read or written."""
    pass


class TokenParseError(OCMError):
    """Raised when a token or its claims are malformed."""
    pass


class URLValidationError(OCMError):
    """Raised when a gateway URL or resource path can't be resolved."""
    pass


class NotArmedError(OCMError):
    """Raised when the stored credentials can't be used for an authenticated call."""

    def __init__(self, reason: str = ""):
        self.reason = reason
        if reason:
            message = f"Not logged in, {reason}, run the 'login' command"
        else:
            message = "Not logged in, run the 'login' command"
        super().__init__(message)


class TokenExchangeError(OCMError):
    """Raised when the SSO server refuses to issue tokens."""
    pass


class RequestError(OCMError):
    """Raised when a request can't be sent to the API gateway."""
    pass


def exit_with_error(message: str, code: int = 1) -> None:
    """Print an error in red on stderr and stop the command."""
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code)


def parse_bool(value: str) -> bool:
    """Parse a boolean literal such as 'true', 'yes', '1' or 'f'.

    Raises:
        ValueError: If the value isn't a recognized boolean literal
    """
    normalized = value.strip().lower()
    if normalized in ("1", "t", "true", "y", "yes"):
        return True
    if normalized in ("0", "f", "false", "n", "no"):
        return False
    raise ValueError(f"invalid boolean value {value!r}")


def parse_pairs(values: list[str], flag: str) -> dict[str, str]:
    """Turn repeated ``name=value`` options into a dictionary.

    Args:
        values: Raw option values
        flag: Option name, used in error messages

    Returns:
        Mapping of names to values

    Raises:
        typer.BadParameter: If a value has no '=' separator
    """
    pairs: dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"expected NAME=VALUE but got {item!r}", param_hint=flag)
        pairs[name] = value
    return pairs


def dump_json(data: Union[bytes, str, Any], single: bool = False, err: bool = False) -> None:
    """Print a JSON document, pretty by default or on a single line.

    Bytes and strings that aren't valid JSON are printed unchanged.
    """
    if isinstance(data, (bytes, str)):
        try:
            data = json.loads(data)
        except ValueError:
            text = data.decode(errors="replace") if isinstance(data, bytes) else data
            typer.echo(text, err=err)
            return
    if single:
        typer.echo(json.dumps(data, separators=(",", ":")), err=err)
    else:
        typer.echo(json.dumps(data, indent=2), err=err)
