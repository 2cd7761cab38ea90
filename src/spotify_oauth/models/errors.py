"""Exception hierarchy for Spotify OAuth authentication errors.

Provides specific exception types for different failure modes to enable
precise error handling and recovery strategies. No exception carries the
client secret.
"""

from __future__ import annotations

# Provider bodies are kept for diagnostics, but never in full.
MAX_BODY_SNIPPET = 500


class OAuth2Error(Exception):
    """Base exception for all OAuth related errors."""

    pass


class InvalidConfigError(OAuth2Error):
    """Raised when client configuration is unusable.

    Covers an empty client id, a redirect URI that does not parse, or
    missing environment configuration. Not retryable.
    """

    pass


class CallbackError(OAuth2Error):
    """Raised when the authorization callback is malformed or invalid."""

    pass


class StateMismatchError(CallbackError):
    """Raised when the echoed state does not match the expected state.

    This indicates either a stale authorization request or a CSRF attempt.
    Token exchange must never proceed after this error.
    """

    pass


class AuthorizationDeniedError(CallbackError):
    """Raised when the provider redirected back with an error instead of a code."""

    def __init__(self, error: str):
        self.error = error
        super().__init__(f"Authorization denied by provider: {error}")


class TokenError(OAuth2Error):
    """Raised when token endpoint operations fail."""

    pass


class TransportError(TokenError):
    """Raised when the token endpoint could not be reached.

    DNS, connection and timeout failures end up here. Callers may retry
    with backoff; the library itself never retries.
    """

    pass


class ProviderError(TokenError):
    """Raised when the token endpoint answers with a non-200 status."""

    def __init__(
        self,
        status: int,
        body: str,
        error: str | None = None,
        error_description: str | None = None,
    ):
        self.status = status
        self.body = body[:MAX_BODY_SNIPPET]
        self.error = error
        self.error_description = error_description

        detail = error or "unknown_error"
        if error_description:
            detail = f"{detail} - {error_description}"
        super().__init__(f"Token endpoint returned {status}: {detail}")

    @property
    def is_retryable(self) -> bool:
        """Server-side failures may succeed later; client errors won't."""
        return self.status >= 500


class MalformedResponseError(TokenError):
    """Raised when a successful response does not match the token schema."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)
