# Copyright (c) 2025 Mahmood Khordoo
#
# This software is licensed under the MIT License.
# See the LICENSE file in the root directory for details.

"""
Connections to the OCM API gateway.

A ``Connection`` keeps the current access and refresh tokens, obtains new
ones from the SSO token endpoint when needed, and sends authenticated
requests with httpx. ``ConnectionBuilder`` ties it to the stored
configuration: it refuses to connect when the configuration isn't armed and
writes the rotated tokens back once the connection is up.

Classes:
    Connection: Authenticated HTTP session against the gateway
    ConnectionBuilder: Builds a connection from the stored configuration
"""

import os
from datetime import timedelta
from typing import Any, Mapping, Optional

import httpx
import typer
from loguru import logger

from ocmcli import __version__
from ocmcli.armed import armed
from ocmcli.config import Config
from ocmcli.helpers import NotArmedError, OCMError, RequestError, TokenExchangeError
from ocmcli.store import ConfigStore, get_config_store
from ocmcli.tokens import REFRESH_TOKEN_MARGIN, parse_claims, token_usable
from ocmcli.urls import (
    DEFAULT_CLIENT_ID,
    DEFAULT_SCOPES,
    DEFAULT_TOKEN_URL,
    DEFAULT_URL,
    OFFLINE_TOKEN_PAGE,
    URL_ENV_VAR,
)

DEFAULT_AGENT = f"OCM-CLI/{__version__}"
DEFAULT_TOKEN_EXPIRY = timedelta(minutes=1)
DEFAULT_TIMEOUT = 30.0

OFFLINE_TOKEN_DEPRECATION_MESSAGE = (
    "Logging in with offline tokens is being deprecated and will no longer be maintained "
    "or enhanced. Instead, log in with a user account or a service account. See "
    "'ocm login --help' for usage. Learn more about deprecating offline tokens via "
    f"{OFFLINE_TOKEN_PAGE}"
)


def _api_target(url: str) -> tuple[str, Optional[str]]:
    """Split a gateway URL into the base URL for httpx and an optional socket path.

    ``unix://host/path.sock`` and ``unix+https://host/path.sock`` talk to a
    unix domain socket, ``h2c://`` is plain HTTP.
    """
    parsed = httpx.URL(url)
    scheme = parsed.scheme
    if scheme == "unix" or scheme.startswith("unix+"):
        inner = scheme.partition("+")[2] or "http"
        if inner == "h2c":
            inner = "http"
        return str(parsed.copy_with(scheme=inner, path="/")), parsed.path
    if scheme == "h2c":
        return str(parsed.copy_with(scheme="http")), None
    return url, None


class Connection:
    """Authenticated session against the OCM API gateway."""

    def __init__(
        self,
        url: str = DEFAULT_URL,
        token_url: str = DEFAULT_TOKEN_URL,
        client_id: str = DEFAULT_CLIENT_ID,
        client_secret: str = "",
        user: str = "",
        password: str = "",
        scopes: Optional[list[str]] = None,
        access_token: str = "",
        refresh_token: str = "",
        insecure: bool = False,
        agent: str = DEFAULT_AGENT,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url
        self.token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._user = user
        self._password = password
        self._scopes = list(scopes) if scopes else list(DEFAULT_SCOPES)
        self._access_token = access_token
        self._refresh_token = refresh_token

        base_url, socket_path = _api_target(url)
        api_transport = transport
        if api_transport is None and socket_path:
            api_transport = httpx.HTTPTransport(uds=socket_path, verify=not insecure)
        headers = {"User-Agent": agent}
        self._api = httpx.Client(
            base_url=base_url,
            transport=api_transport,
            verify=not insecure,
            timeout=timeout,
            headers=headers,
        )
        self._sso = httpx.Client(
            transport=transport,
            verify=not insecure,
            timeout=timeout,
            headers=headers,
        )

    @classmethod
    def from_config(
        cls,
        cfg: Config,
        url: Optional[str] = None,
        agent: str = DEFAULT_AGENT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "Connection":
        """Create a connection using only the settings that have explicit values."""
        return cls(
            url=url or cfg.url or DEFAULT_URL,
            token_url=cfg.token_url or DEFAULT_TOKEN_URL,
            client_id=cfg.client_id or DEFAULT_CLIENT_ID,
            client_secret=cfg.client_secret,
            user=cfg.user,
            password=cfg.password,
            scopes=cfg.scopes,
            access_token=cfg.access_token,
            refresh_token=cfg.refresh_token,
            insecure=cfg.insecure,
            agent=agent,
            transport=transport,
        )

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._api.close()
        self._sso.close()

    def tokens(self, expires_in: timedelta = DEFAULT_TOKEN_EXPIRY) -> tuple[str, str]:
        """Return access and refresh tokens, requesting new ones if needed.

        Args:
            expires_in: Minimum remaining life of the returned access token

        Returns:
            Tuple of (access_token, refresh_token). The refresh token is empty
            when the server doesn't issue one.

        Raises:
            TokenExchangeError: If new tokens are needed and can't be obtained
            TokenParseError: If a current token is malformed
        """
        if self._access_token and token_usable(self._access_token, expires_in):
            return self._access_token, self._refresh_token

        if self._refresh_token and token_usable(self._refresh_token, REFRESH_TOKEN_MARGIN):
            form = {
                "grant_type": "refresh_token",
                "client_id": self._client_id,
                "refresh_token": self._refresh_token,
            }
            if self._client_secret:
                form["client_secret"] = self._client_secret
        elif self._client_id and self._client_secret:
            form = {
                "grant_type": "client_credentials",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            }
        elif self._user and self._password:
            form = {
                "grant_type": "password",
                "client_id": self._client_id,
                "username": self._user,
                "password": self._password,
            }
        else:
            raise TokenExchangeError(
                "no usable tokens or credentials to request a new access token"
            )

        self._request_tokens(form)
        return self._access_token, self._refresh_token

    def _request_tokens(self, form: dict[str, str]) -> None:
        form["scope"] = " ".join(self._scopes)
        logger.debug("Requesting tokens from '{}' with grant '{}'", self.token_url, form["grant_type"])
        try:
            response = self._sso.post(self.token_url, data=form)
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"can't send token request to '{self.token_url}': {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise TokenExchangeError(
                f"can't parse token response from '{self.token_url}' "
                f"(status {response.status_code})"
            ) from e
        if not isinstance(body, dict):
            raise TokenExchangeError(f"unexpected token response from '{self.token_url}'")

        if response.status_code >= 400 or body.get("error"):
            detail = body.get("error_description") or body.get("error") or f"status {response.status_code}"
            raise TokenExchangeError(f"token request failed: {detail}")

        access_token = body.get("access_token")
        if not access_token:
            raise TokenExchangeError("token response doesn't contain an access token")
        self._access_token = access_token
        # Servers may keep the current refresh token instead of rotating it.
        if body.get("refresh_token"):
            self._refresh_token = body["refresh_token"]
        logger.debug("Obtained new access token from '{}'", self.token_url)

    def get(
        self,
        path: str,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Send a GET request to a path of the gateway."""
        return self._send("GET", path, params=params, headers=headers)

    def post(
        self,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Send a POST request with a JSON body to a path of the gateway."""
        return self._send("POST", path, params=params, headers=headers, json=body)

    def _send(self, method: str, path: str, headers: Optional[Mapping[str, str]] = None, **kwargs) -> httpx.Response:
        access_token, _ = self.tokens()
        merged = dict(headers or {})
        merged["Authorization"] = f"Bearer {access_token}"
        logger.debug("Sending {} request to '{}'", method, path)
        try:
            return self._api.request(method, path, headers=merged, **kwargs)
        except httpx.HTTPError as e:
            raise RequestError(f"can't send request: {e}") from e


def offline_token_deprecation_warning(refresh_token: str) -> None:
    """Warn when a refresh token carries the ``offline_access`` scope.

    This notice must never block the user, so unreadable tokens are skipped.
    """
    try:
        claims = parse_claims(refresh_token)
    except OCMError as e:
        logger.debug("Failed to parse refresh token for deprecation warning: {}", e)
        return
    scopes = claims.get("scope")
    if not isinstance(scopes, str):
        logger.debug("Refresh token has no scopes for deprecation warning")
        return
    if "offline_access" in scopes:
        typer.secho(OFFLINE_TOKEN_DEPRECATION_MESSAGE, fg=typer.colors.YELLOW, err=True)


def save_tokens(store: ConfigStore, cfg: Config, connection: Connection) -> None:
    """Write the current tokens of a connection back to the store."""
    cfg.access_token, cfg.refresh_token = connection.tokens()
    store.save(cfg)


class ConnectionBuilder:
    """Builds a connection from the stored configuration.

    Example:
        builder = ConnectionBuilder()
        with builder.build() as connection:
            response = connection.get("/api/accounts_mgmt/v1/current_account")
            save_tokens(builder.store, builder.config, connection)
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ
        self._cfg: Optional[Config] = None
        self._store: Optional[ConfigStore] = None
        self._api_url = ""
        self._agent = ""
        self._transport: Optional[httpx.BaseTransport] = None

    def with_config(self, cfg: Config) -> "ConnectionBuilder":
        """Use this configuration instead of loading it from the store."""
        self._cfg = cfg
        return self

    def with_store(self, store: ConfigStore) -> "ConnectionBuilder":
        self._store = store
        return self

    def with_api_url(self, url: str) -> "ConnectionBuilder":
        """Override the gateway URL of the configuration."""
        self._api_url = url
        return self

    def as_agent(self, agent: str) -> "ConnectionBuilder":
        self._agent = agent
        return self

    def with_transport(self, transport: httpx.BaseTransport) -> "ConnectionBuilder":
        self._transport = transport
        return self

    @property
    def store(self) -> ConfigStore:
        if self._store is None:
            self._store = get_config_store(self._environ)
        return self._store

    @property
    def config(self) -> Optional[Config]:
        return self._cfg

    def build(self) -> Connection:
        """Create the connection and persist the tokens it starts with.

        Raises:
            NotArmedError: If there is no configuration or it can't be used
            ConfigIOError: If the configuration can't be loaded or saved
            TokenExchangeError: If new tokens can't be obtained
        """
        store = self.store
        if self._cfg is None:
            self._cfg = store.load()
            if self._cfg is None:
                raise NotArmedError()
        cfg = self._cfg

        state = armed(cfg)
        if not state.armed:
            raise NotArmedError(state.reason)

        api_url = self._api_url
        override = self._environ.get(URL_ENV_VAR, "")
        if not api_url and override:
            logger.debug(
                "{} is overridden via environment variable. If you experience issues while it "
                "is set, unset it and log in directly to the desired OCM environment.",
                URL_ENV_VAR,
            )
            api_url = override

        connection = Connection.from_config(
            cfg,
            url=api_url or None,
            agent=self._agent or DEFAULT_AGENT,
            transport=self._transport,
        )
        try:
            access_token, refresh_token = connection.tokens()
            # Only warn on login and when SSO rotates the refresh token.
            if refresh_token and cfg.refresh_token != refresh_token:
                offline_token_deprecation_warning(refresh_token)
            cfg.access_token = access_token
            cfg.refresh_token = refresh_token
            store.save(cfg)
        except Exception:
            connection.close()
            raise
        return connection
