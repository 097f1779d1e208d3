"""
Armed-state evaluation.

Decides whether a configuration holds enough material to attempt an
authenticated request right now and, when it doesn't, explains why.
"""

from datetime import datetime
from typing import NamedTuple, Optional

from ocmcli.config import Config
from ocmcli.tokens import ACCESS_TOKEN_MARGIN, REFRESH_TOKEN_MARGIN, token_usable


class ArmedState(NamedTuple):
    armed: bool
    reason: str = ""


def armed(cfg: Config, now: Optional[datetime] = None) -> ArmedState:
    """Check if the configuration contains credentials or tokens that haven't expired.

    Missing credentials are reported before missing URLs, since fixing the
    credentials is the more common corrective action.

    Args:
        cfg: Configuration to evaluate
        now: Reference time for token expiry, defaults to the current time

    Returns:
        ArmedState with an empty reason when armed

    Raises:
        TokenParseError: If a stored token is malformed
    """
    have_url = cfg.url != ""
    have_token_url = cfg.token_url != ""
    have_urls = have_url and have_token_url

    have_password = cfg.user != "" and cfg.password != ""
    have_secret = cfg.client_id != "" and cfg.client_secret != ""
    have_credentials = have_password or have_secret

    # Encrypted refresh tokens can't be introspected, token_usable assumes
    # they are valid and lets the token request fail instead.
    have_access = cfg.access_token != ""
    access_usable = have_access and token_usable(cfg.access_token, ACCESS_TOKEN_MARGIN, now)
    have_refresh = cfg.refresh_token != ""
    refresh_usable = have_refresh and token_usable(cfg.refresh_token, REFRESH_TOKEN_MARGIN, now)

    usable = have_credentials or access_usable or refresh_usable
    if have_urls and usable:
        return ArmedState(True)

    if have_access and not access_usable and not have_refresh:
        reason = "access token is expired"
    elif have_refresh and not refresh_usable and not have_access:
        reason = "refresh token is expired"
    elif have_access and not access_usable and have_refresh and not refresh_usable:
        reason = "access and refresh tokens are expired"
    elif not have_credentials:
        reason = "credentials aren't set"
    # Legacy wording: scripts match on these exact strings.
    elif have_url and not have_token_url:
        reason = "server URL isn't set"
    elif not have_url and have_token_url:
        reason = "token URL isn't set"
    else:
        reason = "server and token URLs aren't set"
    return ArmedState(False, reason)
