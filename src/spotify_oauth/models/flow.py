"""Authorization flow models for the Spotify authorization code flow.

Contains models for authorization requests and callback handling.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import quote, urlencode

from spotify_oauth.models.errors import InvalidConfigError
from spotify_oauth.models.scopes import SpotifyScope, render_scopes
from spotify_oauth.services.security import generate_state, validate_redirect_uri

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for one login attempt.

    Immutable once built. The state is generated here unless the caller
    supplies one, and must be kept to validate the callback.
    """

    client_id: str
    redirect_uri: str
    scopes: Sequence[SpotifyScope] = ()
    show_dialog: bool | None = None  # None leaves it off the URL
    state: str | None = None  # None generates a fresh one
    authorization_endpoint: str = SPOTIFY_AUTHORIZE_URL

    response_type = "code"

    def __post_init__(self) -> None:
        if not self.client_id:
            raise InvalidConfigError("client_id must not be empty")
        validate_redirect_uri(self.redirect_uri)
        if self.state is None:
            object.__setattr__(self, "state", generate_state())
        elif not self.state:
            raise InvalidConfigError("state must not be empty")
        object.__setattr__(self, "scopes", tuple(self.scopes))

    @property
    def scope(self) -> str:
        return render_scopes(self.scopes)

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL.

        Parameters are always emitted in the same order: client_id,
        response_type, redirect_uri, scope, state, show_dialog.
        """
        params = {
            "client_id": self.client_id,
            "response_type": self.response_type,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "state": self.state,
        }

        if self.show_dialog is not None:
            params["show_dialog"] = "true" if self.show_dialog else "false"

        return f"{self.authorization_endpoint}?{urlencode(params, quote_via=quote)}"


@dataclass(frozen=True)
class AuthorizationResponse:
    code: str | None = None
    state: str | None = None
    error: str | None = None

    def is_success(self) -> bool:
        return self.error is None and self.code is not None

    def is_error(self) -> bool:
        return self.error is not None
