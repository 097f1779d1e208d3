# Copyright (c) 2025 Mahmood Khordoo
#
# This software is licensed under the MIT License.
# See the LICENSE file in the root directory for details.

"""
OCM configuration record.

Defines the authentication state persisted between invocations: tokens,
service credentials, connection parameters and a display preference. The
record is loaded and saved through ``ocmcli.store`` and passed explicitly to
the code that needs it.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Config(BaseModel):
    """Configuration stored in the config file or the OS keyring."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(default="", description="Bearer access token.")
    client_id: str = Field(default="", description="OpenID client identifier.")
    client_secret: str = Field(default="", description="OpenID client secret.")
    insecure: bool = Field(
        default=False,
        description="Enables insecure communication with the server. This disables "
        "verification of TLS certificates and host names.",
    )
    password: str = Field(default="", description="User password.")
    refresh_token: str = Field(default="", description="Offline or refresh token.")
    scopes: Optional[list[str]] = Field(
        default=None,
        description="OpenID scope. If this option is used it will replace completely the "
        "default scopes. Can be repeated multiple times to specify multiple scopes.",
    )
    token_url: str = Field(default="", description="OpenID token URL.")
    url: str = Field(
        default="",
        description="URL of the API gateway. The value can be the complete URL or an alias. "
        "The valid aliases are 'production', 'staging' and 'integration'.",
    )
    user: str = Field(default="", description="User name.")
    pager: str = Field(
        default="",
        description="Pager command, for example 'less'. If empty no pager will be used.",
    )

    def disarm(self) -> None:
        """Remove all the settings that are needed for authentication."""
        self.access_token = ""
        self.client_id = ""
        self.client_secret = ""
        self.insecure = False
        self.password = ""
        self.refresh_token = ""
        self.scopes = None
        self.token_url = ""
        self.url = ""
        self.user = ""

    def to_json(self) -> str:
        """Serialize as two-space indented JSON, omitting empty settings."""
        return self.model_dump_json(indent=2, exclude_defaults=True)

    @classmethod
    def from_json(cls, data: str) -> "Config":
        """Parse a serialized record. An empty document is an empty record.

        Raises:
            pydantic.ValidationError: If the document isn't a valid record
        """
        if not data.strip():
            return cls()
        return cls.model_validate_json(data)


def describe_variables() -> str:
    """Return one help line per config variable, for ``ocm config --help``."""
    lines = []
    for name, field in Config.model_fields.items():
        lines.append(f"  {name:<15}{field.description}")
    return "\n".join(lines)
