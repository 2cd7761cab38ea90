"""Token state and lifecycle models for the Spotify token endpoint.

Contains the immutable token state handed to callers, the wire-level token
response, and the form-encoded token requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from spotify_oauth.models.errors import MalformedResponseError
from spotify_oauth.models.scopes import SpotifyScope, parse_scopes


@dataclass(frozen=True)
class TokenState:
    """Immutable token state for one authorized user.

    ``expires_at`` is a Unix timestamp derived from the moment the token was
    issued locally plus ``expires_in``. It is never taken from the token
    endpoint. A refresh produces a new TokenState; this one is never updated.
    """

    access_token: str
    token_type: str
    scope: str
    expires_in: int
    expires_at: float  # Unix timestamp
    refresh_token: str | None = None

    @classmethod
    def issue(
        cls,
        *,
        access_token: str,
        token_type: str,
        scope: str,
        expires_in: int,
        refresh_token: str | None,
        issued_at: float,
    ) -> TokenState:
        """Create a token state issued at ``issued_at``."""
        return cls(
            access_token=access_token,
            token_type=token_type,
            scope=scope,
            expires_in=expires_in,
            expires_at=issued_at + expires_in,
            refresh_token=refresh_token,
        )

    def is_expired(self, now: float) -> bool:
        """Check whether the access token has expired at ``now``.

        Args:
            now: Current Unix timestamp, supplied by the caller
        """
        return now >= self.expires_at

    def seconds_until_expiry(self, now: float) -> float:
        """Seconds left before expiry at ``now``; never negative."""
        return max(0.0, self.expires_at - now)

    def can_refresh(self) -> bool:
        """Check if token can be refreshed."""
        return bool(self.refresh_token)

    def authorization_header(self) -> str:
        """Value for the Authorization header of Web API requests."""
        return f"{self.token_type} {self.access_token}"

    def granted_scopes(self) -> list[SpotifyScope]:
        """Scopes granted to this token, skipping any this library doesn't know."""
        return parse_scopes(self.scope, strict=False)

    def to_serializable(self) -> dict[str, Any]:
        """Convert to a plain record suitable for JSON persistence."""
        return TokenRecord(
            access_token=self.access_token,
            token_type=self.token_type,
            scope=self.scope,
            expires_in=self.expires_in,
            expires_at=self.expires_at,
            refresh_token=self.refresh_token,
        ).model_dump()

    @classmethod
    def from_serializable(cls, record: dict[str, Any]) -> TokenState:
        """Restore a token state from a record made by ``to_serializable``.

        ``expires_at`` is restored as stored, not recomputed.

        Raises:
            MalformedResponseError: If the record is missing fields or has
                fields of the wrong type
        """
        try:
            parsed = TokenRecord.model_validate(record)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Invalid token record: {e}", field=_first_error_field(e)
            ) from e

        return cls(**parsed.model_dump())


class TokenRecord(BaseModel):
    """Persisted form of a TokenState. Field names are fixed."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str
    scope: str
    expires_in: int = Field(ge=0)
    expires_at: float
    refresh_token: str | None = None


class TokenResponse(BaseModel):
    """Successful token endpoint response.

    Strict so that a provider sending the wrong JSON types is reported
    instead of silently coerced.
    """

    model_config = ConfigDict(strict=True, extra="ignore")

    access_token: str = Field(min_length=1)
    token_type: str
    expires_in: int = Field(ge=0)  # Seconds until expiry
    scope: str = ""
    refresh_token: str | None = None

    @classmethod
    def from_json(cls, data: Any) -> TokenResponse:
        """Validate a decoded JSON body.

        Raises:
            MalformedResponseError: Naming the first offending field
        """
        if not isinstance(data, dict):
            raise MalformedResponseError("Token response is not a JSON object")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            field = _first_error_field(e)
            raise MalformedResponseError(
                f"Token response has missing or invalid field {field!r}", field=field
            ) from e

    def to_token_state(
        self, issued_at: float, refresh_token: str | None = None
    ) -> TokenState:
        """Convert to TokenState.

        Args:
            issued_at: Local Unix timestamp at which the response arrived
            refresh_token: Used when the response carries no refresh token
        """
        return TokenState.issue(
            access_token=self.access_token,
            token_type=self.token_type,
            scope=self.scope,
            expires_in=self.expires_in,
            refresh_token=self.refresh_token or refresh_token,
            issued_at=issued_at,
        )


def _first_error_field(error: ValidationError) -> str | None:
    errors = error.errors()
    if errors and errors[0]["loc"]:
        return str(errors[0]["loc"][0])
    return None


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange parameters (RFC 6749 Section 4.1.3).

    Client credentials travel in the Basic Authorization header, so they are
    not part of the form body.
    """

    code: str
    redirect_uri: str
    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for application/x-www-form-urlencoded request."""
        return {
            "grant_type": self.grant_type,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
        }


@dataclass(frozen=True)
class RefreshTokenRequest:
    """Refresh token request parameters (RFC 6749 Section 6)."""

    refresh_token: str
    grant_type: str = "refresh_token"

    def to_form_data(self) -> dict[str, str]:
        return {
            "grant_type": self.grant_type,
            "refresh_token": self.refresh_token,
        }
