# Copyright (c) 2025 Mahmood Khordoo
#
# This software is licensed under the MIT License.
# See the LICENSE file in the root directory for details.

"""
Well known URLs and URL resolution for OCM.

Resolves the API gateway URL from the command line, the stored configuration
and the built-in default, and expands resource aliases such as ``clusters`` or
``acct <id>`` into API paths.
"""

from typing import Optional

import httpx

from ocmcli.config import Config
from ocmcli.helpers import URLValidationError

# Page used to generate offline access tokens.
OFFLINE_TOKEN_PAGE = "https://console.redhat.com/openshift/token"

OCM_PRODUCTION_URL = "https://api.openshift.com"
OCM_STAGING_URL = "https://api.stage.openshift.com"
OCM_INTEGRATION_URL = "https://api.integration.openshift.com"

DEFAULT_URL = OCM_PRODUCTION_URL
DEFAULT_TOKEN_URL = "https://sso.redhat.com/auth/realms/redhat-external/protocol/openid-connect/token"
DEFAULT_CLIENT_ID = "cloud-services"
DEFAULT_SCOPES = ["openid"]

URL_ENV_VAR = "OCM_URL"

OCM_URL_ALIASES = {
    "production": OCM_PRODUCTION_URL,
    "prod": OCM_PRODUCTION_URL,
    "prd": OCM_PRODUCTION_URL,
    "staging": OCM_STAGING_URL,
    "stage": OCM_STAGING_URL,
    "stg": OCM_STAGING_URL,
    "integration": OCM_INTEGRATION_URL,
    "int": OCM_INTEGRATION_URL,
}

ACCOUNTS_MGMT = "/api/accounts_mgmt/v1"
CLUSTERS_MGMT = "/api/clusters_mgmt/v1"

# Aliases for collections, used with no ID.
COLLECTION_PATHS = {
    "accounts": f"{ACCOUNTS_MGMT}/accounts",
    "accts": f"{ACCOUNTS_MGMT}/accounts",
    "subscriptions": f"{ACCOUNTS_MGMT}/subscriptions",
    "subs": f"{ACCOUNTS_MGMT}/subscriptions",
    "organizations": f"{ACCOUNTS_MGMT}/organizations",
    "orgs": f"{ACCOUNTS_MGMT}/organizations",
    "clusters": f"{CLUSTERS_MGMT}/clusters",
    "role_bindings": f"{ACCOUNTS_MGMT}/role_bindings",
    "resource_quota": f"{ACCOUNTS_MGMT}/resource_quota",
    "skus": f"{ACCOUNTS_MGMT}/skus",
    "roles": f"{ACCOUNTS_MGMT}/roles",
}

# Aliases for individual resources, which require an ID.
RESOURCE_PATHS = {
    "account": f"{ACCOUNTS_MGMT}/accounts/",
    "acct": f"{ACCOUNTS_MGMT}/accounts/",
    "subscription": f"{ACCOUNTS_MGMT}/subscriptions/",
    "sub": f"{ACCOUNTS_MGMT}/subscriptions/",
    "organization": f"{ACCOUNTS_MGMT}/organizations/",
    "org": f"{ACCOUNTS_MGMT}/organizations/",
    "cluster": f"{CLUSTERS_MGMT}/clusters/",
    "role_binding": f"{ACCOUNTS_MGMT}/role_bindings/",
    "sku": f"{ACCOUNTS_MGMT}/skus/",
    "role": f"{ACCOUNTS_MGMT}/roles/",
}


def valid_url_aliases() -> list[str]:
    """Return the names accepted as aliases for the gateway URL."""
    return sorted(OCM_URL_ALIASES)


def _check_absolute(value: str) -> None:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as e:
        raise ValueError(f"parse {value!r}: {e}") from e
    if not url.scheme:
        raise ValueError(f"parse {value!r}: invalid URI for request")
    if not url.host:
        raise ValueError(f"parse {value!r}: missing host")


def resolve_gateway_url(cli_value: Optional[str], cfg: Optional[Config]) -> str:
    """Resolve the URL of the API gateway.

    Precedence, from highest to lowest:
        1. ``cli_value`` when it is one of the aliases
        2. ``cli_value`` when it is not empty
        3. the ``url`` of the configuration
        4. ``DEFAULT_URL``

    Args:
        cli_value: Value of the ``--url`` option, possibly empty
        cfg: Loaded configuration, or None

    Returns:
        Absolute URL of the gateway

    Raises:
        URLValidationError: If the resolved value isn't an absolute URL
    """
    gateway_url = DEFAULT_URL
    source = "default"
    if cli_value:
        gateway_url = OCM_URL_ALIASES.get(cli_value, cli_value)
        source = "flag"
    elif cfg is not None and cfg.url:
        gateway_url = cfg.url
        source = "config"

    try:
        _check_absolute(gateway_url)
    except ValueError as e:
        raise URLValidationError(
            f"{e}\n\nURL Source: {source}\n"
            f"Expected an absolute URI/path (e.g. {DEFAULT_URL}) or a case-sensitive alias, "
            f"one of: [{', '.join(valid_url_aliases())}]"
        ) from e
    return gateway_url


def expand(argv: list[str]) -> str:
    """Expand a resource alias, and an optional ID, into an API path.

    Names that aren't aliases are passed through unchanged.

    Raises:
        URLValidationError: If there are too few or too many arguments, or an
            individual resource is missing its ID
    """
    if len(argv) < 1 or len(argv) > 2:
        raise URLValidationError(
            f"Expected 1 (for Lists) or 2 (for a specific resource) but got {len(argv)}"
        )
    name = argv[0]
    if name in COLLECTION_PATHS:
        return COLLECTION_PATHS[name]
    if name in RESOURCE_PATHS:
        if len(argv) != 2:
            raise URLValidationError("Resource requires an ID, but got none")
        return RESOURCE_PATHS[name] + argv[1]
    return name


def resources() -> list[str]:
    """Return every resource alias, for shell completion."""
    return sorted([*COLLECTION_PATHS, *RESOURCE_PATHS])
