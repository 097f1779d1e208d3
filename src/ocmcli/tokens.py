# Copyright (c) 2025 Mahmood Khordoo
#
# This software is licensed under the MIT License.
# See the LICENSE file in the root directory for details.

"""
Token inspection for OCM.

Reads the metadata of the bearer, refresh and offline tokens issued by Red Hat
SSO. Signatures are never verified: the tool trusts the issuer and only needs
the ``typ`` and ``exp`` claims to decide where a token goes and whether it can
still be used.

Functions:
    classify: Tell signed tokens from encrypted ones
    parse_claims: Decode the claims of a signed token
    token_type: Read the ``typ`` claim
    token_role: Map a ``typ`` value to access/refresh
    expiration: Compute how long a token remains valid
    token_usable: Check a token against an expiry margin
"""

import base64
import binascii
import json
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

import jwt

from ocmcli.helpers import TokenParseError

ACCESS_TOKEN_MARGIN = timedelta(seconds=5)
REFRESH_TOKEN_MARGIN = timedelta(seconds=10)

ACCESS_TOKEN_TYPES = ("Bearer", "")
REFRESH_TOKEN_TYPES = ("Refresh", "Offline")


class TokenShape(str, Enum):
    SIGNED = "signed"
    ENCRYPTED = "encrypted"


class TokenRole(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    UNKNOWN = "unknown"


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _b64decode(segment: str, urlsafe: bool = False) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    if urlsafe:
        return base64.urlsafe_b64decode(padded)
    return base64.b64decode(padded, validate=True)


def is_encrypted(token: str) -> bool:
    """Check if the token is an encrypted (five segment) JWT.

    The header of an encrypted token must declare a content encryption
    algorithm and a nested ``JWT`` content type. Anything that fails to decode
    is treated as not encrypted.
    """
    parts = token.split(".")
    if len(parts) != 5:
        return False
    try:
        decoded = _b64decode(parts[0])
    except (binascii.Error, ValueError):
        return False
    if not decoded:
        return False
    try:
        header = json.loads(decoded)
    except ValueError:
        return False
    if not isinstance(header, dict):
        return False
    return bool(header.get("enc")) and header.get("cty") == "JWT"


def classify(token: str) -> TokenShape:
    """Return the shape of the token, checking for encryption first."""
    if is_encrypted(token):
        return TokenShape.ENCRYPTED
    return TokenShape.SIGNED


def parse_claims(token: str) -> dict[str, Any]:
    """Decode the claims of a signed token without verifying its signature.

    Args:
        token: Compact serialized JWT

    Returns:
        Claims of the token

    Raises:
        TokenParseError: If the token isn't a three segment JWT with a JSON payload
    """
    if token.count(".") != 2:
        raise TokenParseError("token contains an invalid number of segments")
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise TokenParseError(f"can't parse token: {e}") from e


def token_type(claims: dict[str, Any]) -> str:
    """Return the value of the ``typ`` claim, or the empty string if there is none."""
    claim = claims.get("typ")
    if claim is None:
        return ""
    if not isinstance(claim, str):
        raise TokenParseError(f"expected string 'typ' but got {type(claim).__name__}")
    return claim


def token_role(typ: str) -> TokenRole:
    """Map the ``typ`` claim to the role of the token."""
    if typ in ACCESS_TOKEN_TYPES:
        return TokenRole.ACCESS
    if typ in REFRESH_TOKEN_TYPES:
        return TokenRole.REFRESH
    return TokenRole.UNKNOWN


def expiration(claims: dict[str, Any], now: Optional[datetime] = None) -> tuple[bool, timedelta]:
    """Determine if a token expires and how much time it has left.

    Args:
        claims: Decoded claims of the token
        now: Reference time, defaults to the current UTC time

    Returns:
        Tuple of (expires, remaining). Remaining is negative for expired tokens
        and zero for tokens that never expire.

    Raises:
        TokenParseError: If the ``exp`` claim isn't a number
    """
    claim = claims.get("exp")
    if claim is None:
        return False, timedelta(0)
    if isinstance(claim, bool) or not isinstance(claim, (int, float)):
        raise TokenParseError(f"expected numeric 'exp' but got {type(claim).__name__}")
    if claim == 0:
        return False, timedelta(0)
    try:
        remaining = timedelta(seconds=int(claim) - _now(now).timestamp())
    except OverflowError:
        # Past the range of timedelta, e.g. an exp written in milliseconds.
        remaining = timedelta.max if claim > 0 else timedelta.min
    except ValueError as e:
        raise TokenParseError(f"invalid 'exp' claim: {e}") from e
    return True, remaining


def token_usable(token: str, margin: timedelta, now: Optional[datetime] = None) -> bool:
    """Check if a token can still be used for at least ``margin``.

    Encrypted tokens are always considered usable because their claims can't
    be read; the server rejects them if they have actually expired.

    Raises:
        TokenParseError: If the token is malformed
    """
    if is_encrypted(token):
        return True
    expires, left = expiration(parse_claims(token), now)
    if not expires:
        return True
    return left >= margin


def split_token(token: str) -> tuple[bytes, bytes, bytes]:
    """Decode the header, payload and signature segments of a signed token.

    Raises:
        TokenParseError: If the token isn't a well formed three segment JWT
    """
    parse_claims(token)
    header, payload, signature = token.split(".")
    try:
        return (
            _b64decode(header, urlsafe=True),
            _b64decode(payload, urlsafe=True),
            _b64decode(signature, urlsafe=True),
        )
    except (binascii.Error, ValueError) as e:
        raise TokenParseError(f"can't decode token: {e}") from e
