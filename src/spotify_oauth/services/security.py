"""Security utilities for the authorization code flow.

Provides cryptographically secure state generation and validation, redirect
URI checks, and client credential encoding for the token endpoint.
"""

from __future__ import annotations

import base64
import secrets
import string
from urllib.parse import urlparse

from spotify_oauth.models.errors import InvalidConfigError, StateMismatchError

STATE_LENGTH = 32
STATE_ALPHABET = string.ascii_letters + string.digits


def generate_state(length: int = STATE_LENGTH) -> str:
    """Generate cryptographically secure state parameter.

    The state parameter provides CSRF protection by ensuring the callback
    matches the original authorization request. 32 alphanumeric characters
    carry roughly 190 bits of entropy.

    Returns:
        Random alphanumeric state string
    """
    return "".join(secrets.choice(STATE_ALPHABET) for _ in range(length))


def validate_state(expected: str, actual: str | None) -> None:
    """Validate state parameter matches expected value.

    Args:
        expected: State parameter from original authorization request
        actual: State parameter echoed back in the callback

    Raises:
        StateMismatchError: If state parameters don't match
    """
    if actual is None:
        raise StateMismatchError("Callback is missing the state parameter")
    # surrogatepass keeps lone surrogates comparable instead of failing to encode
    expected_bytes = expected.encode("utf-8", "surrogatepass")
    actual_bytes = actual.encode("utf-8", "surrogatepass")
    if not secrets.compare_digest(expected_bytes, actual_bytes):
        raise StateMismatchError("State parameter mismatch - possible CSRF attack")


def validate_redirect_uri(uri: str) -> str:
    """Validate that a redirect URI is an absolute URI.

    Returns:
        The URI unchanged

    Raises:
        InvalidConfigError: If the URI has no scheme or host
    """
    try:
        parsed = urlparse(uri)
    except ValueError as e:
        raise InvalidConfigError(f"Invalid redirect URI {uri!r}: {e}") from e

    if not parsed.scheme or not parsed.netloc:
        raise InvalidConfigError(
            f"Invalid redirect URI {uri!r}: scheme and host are required"
        )
    return uri


def basic_auth_header(client_id: str, client_secret: str) -> str:
    """Build the HTTP Basic Authorization header value for the token endpoint."""
    credentials = f"{client_id}:{client_secret}".encode("utf-8")
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"
