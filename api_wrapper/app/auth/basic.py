"""
HTTP Basic Authentication
=========================

Verifies the wrapper's own Basic auth credentials on /v1/* requests.

The caller authenticates against WRAPPER_USERNAME / WRAPPER_PASSWORD; the
vendor API key is never exposed to the caller. Credentials are compared in
constant time.
"""

import base64
import binascii
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from ..config import Settings
from ..errors import AuthenticationFailed

logger = logging.getLogger(__name__)


BASIC_PREFIX = "Basic "


@dataclass(frozen=True)
class BasicCredentials:
    username: str
    password: str


# =============================================================================
# Header Decoding
# =============================================================================

def decode_basic_credentials(authorization: Optional[str]) -> BasicCredentials:
    """
    Decode an ``Authorization: Basic <base64>`` header.

    The decoded value is split on the first colon. A value without a colon
    yields an empty password.

    Args:
        authorization: Raw Authorization header value

    Returns:
        Decoded username and password

    Raises:
        AuthenticationFailed: If the header is absent, not Basic, or not
            valid base64/UTF-8
    """
    if not authorization or not authorization.startswith(BASIC_PREFIX):
        raise AuthenticationFailed("Missing Basic auth header")

    encoded = authorization[len(BASIC_PREFIX):].strip()
    # Clients may omit the trailing "=" padding
    encoded += "=" * (-len(encoded) % 4)
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        raise AuthenticationFailed("Invalid Basic auth encoding")

    username, _, password = decoded.partition(":")
    return BasicCredentials(username=username, password=password)


def _matches(supplied: str, expected: Optional[str]) -> bool:
    if not expected:
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def authenticate_basic(authorization: Optional[str], settings: Settings) -> BasicCredentials:
    """
    Authenticate a caller against the configured wrapper credentials.

    Both comparisons always run so the response time does not reveal which
    of the two fields was wrong.

    Raises:
        AuthenticationFailed: On any decoding problem or credential mismatch
    """
    credentials = decode_basic_credentials(authorization)

    username_ok = _matches(credentials.username, settings.WRAPPER_USERNAME)
    password_ok = _matches(credentials.password, settings.WRAPPER_PASSWORD)

    if not (username_ok and password_ok):
        logger.warning(
            "Rejected Basic auth credentials",
            extra={"username_ok": username_ok, "password_ok": password_ok},
        )
        raise AuthenticationFailed("Invalid credentials")

    return credentials

