"""Spotify OAuth client orchestration.

Ties one registered application's credentials to the authorization flow
and token exchange, so callers deal with a single object for the whole
token lifecycle.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from spotify_oauth.models.credentials import ClientCredentials
from spotify_oauth.models.errors import TokenError
from spotify_oauth.models.flow import AuthorizationRequest
from spotify_oauth.models.scopes import SpotifyScope
from spotify_oauth.models.tokens import TokenState
from spotify_oauth.services.flow import AuthorizationFlow, parse_callback_url
from spotify_oauth.services.tokens import TokenExchange

logger = logging.getLogger(__name__)


class SpotifyOAuthClient:
    """Authorization code flow client for one Spotify application.

    Holds no token state of its own: every method takes the caller's current
    TokenState and returns a new one, so the caller decides where the
    current token lives and swaps it in one step.
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        token_exchange: TokenExchange | None = None,
        flow: AuthorizationFlow | None = None,
    ):
        self.credentials = credentials
        self.token_exchange = token_exchange or TokenExchange()
        self.flow = flow or AuthorizationFlow()

    @classmethod
    def from_env(cls, env_file: str | None = None, **kwargs) -> SpotifyOAuthClient:
        """Create a client from SPOTIFY_* environment variables."""
        return cls(ClientCredentials.from_env(env_file), **kwargs)

    def authorization_request(
        self,
        scopes: Sequence[SpotifyScope] = (),
        show_dialog: bool | None = None,
    ) -> AuthorizationRequest:
        """Start a login attempt for the given scopes."""
        return self.flow.start(
            self.credentials.client_id,
            self.credentials.redirect_uri,
            scopes=scopes,
            show_dialog=show_dialog,
        )

    async def exchange_code(
        self, code: str, expected_state: str, received_state: str | None
    ) -> TokenState:
        """Exchange an authorization code after checking the echoed state."""
        return await self.token_exchange.exchange_code(
            self.credentials.client_id,
            self.credentials.client_secret,
            self.credentials.redirect_uri,
            code,
            expected_state,
            received_state,
        )

    async def exchange_callback(
        self, callback_url: str, request: AuthorizationRequest
    ) -> TokenState:
        """Complete a login attempt from the provider's redirect URL.

        Args:
            callback_url: Full redirect URL received from the provider
            request: The AuthorizationRequest the user was sent with

        Raises:
            CallbackError: If the callback is malformed
            StateMismatchError: If the state doesn't match the request
            AuthorizationDeniedError: If the user denied access
            TokenError: If the code exchange fails
        """
        auth_response = parse_callback_url(callback_url)
        code = self.flow.check_response(auth_response, request.state)
        return await self.exchange_code(code, request.state, auth_response.state)

    async def refresh(self, token: TokenState) -> TokenState:
        """Refresh ``token`` into a new TokenState.

        Raises:
            TokenError: If the token has no refresh token or the refresh fails
        """
        if not token.can_refresh():
            raise TokenError("Token has no refresh token")
        return await self.token_exchange.refresh(
            self.credentials.client_id,
            self.credentials.client_secret,
            token.refresh_token,
        )

    async def ensure_fresh(
        self, token: TokenState, now: float | None = None, leeway: float = 0.0
    ) -> TokenState:
        """Return ``token`` if still valid, otherwise a refreshed replacement.

        Args:
            token: The caller's current token state
            now: Current Unix timestamp; read from the exchange clock when omitted
            leeway: Refresh this many seconds before actual expiry
        """
        if now is None:
            now = self.token_exchange.clock()
        if not token.is_expired(now + leeway):
            return token

        logger.info("Access token expired, refreshing")
        return await self.refresh(token)

    async def close(self) -> None:
        await self.token_exchange.close()

    async def __aenter__(self) -> SpotifyOAuthClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
