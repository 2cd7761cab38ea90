"""Spotify token exchange and refresh service.

Implements the RFC 6749 token endpoint interactions used by the Spotify
authorization code flow: code-for-token (Section 4.1.3) and
refresh-for-token (Section 6), authenticated with HTTP Basic client
credentials (Section 2.3.1).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import httpx

from spotify_oauth.models.errors import (
    MalformedResponseError,
    ProviderError,
    TransportError,
)
from spotify_oauth.models.http import HttpRequest, HttpResponse
from spotify_oauth.models.tokens import (
    RefreshTokenRequest,
    TokenRequest,
    TokenResponse,
    TokenState,
)
from spotify_oauth.services.security import basic_auth_header, validate_state
from spotify_oauth.services.transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"


class TokenExchange:
    """Performs the two token transitions against the Spotify token endpoint.

    Handles:
    - Authorization code to token exchange, after checking the CSRF state
    - Access token refresh
    - Mapping of transport, provider and schema failures to typed errors

    Each call is a single round trip with no retries and no shared state, so
    one instance can serve concurrent exchanges for different users.

    When a refresh response omits ``refresh_token``, Spotify means "keep the
    one you have". With ``reuse_refresh_token`` (the default) the new
    TokenState carries the caller's refresh token forward; without it the new
    state has no refresh token.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        token_endpoint: str = SPOTIFY_TOKEN_URL,
        clock: Callable[[], float] = time.time,
        reuse_refresh_token: bool = True,
    ):
        """Initialize the token exchange.

        Args:
            transport: Transport for the token endpoint; defaults to httpx
            token_endpoint: Token endpoint URL
            clock: Returns the current Unix timestamp; used for expires_at
            reuse_refresh_token: Carry the old refresh token over when a
                refresh response omits it
        """
        self.transport = transport or HttpxTransport()
        self.token_endpoint = token_endpoint
        self.clock = clock
        self.reuse_refresh_token = reuse_refresh_token

    async def exchange_code(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        code: str,
        expected_state: str,
        received_state: str | None,
    ) -> TokenState:
        """Exchange an authorization code for a token state.

        The state check happens before anything is sent.

        Args:
            client_id: Spotify application client id
            client_secret: Spotify application client secret
            redirect_uri: Redirect URI used in the authorization request
            code: Authorization code from the callback
            expected_state: State generated for the authorization request
            received_state: State echoed back in the callback

        Returns:
            TokenState: Freshly issued token state

        Raises:
            StateMismatchError: If the states differ
            TransportError: If the token endpoint could not be reached
            ProviderError: If the token endpoint returned a non-200 status
            MalformedResponseError: If the 200 response is not a valid token
        """
        validate_state(expected_state, received_state)

        token_request = TokenRequest(code=code, redirect_uri=redirect_uri)
        logger.debug(
            f"Exchanging authorization code at {self.token_endpoint} "
            f"for client {client_id}"
        )

        token_response = await self._request_token(
            client_id, client_secret, token_request.to_form_data()
        )
        if not token_response.refresh_token:
            raise MalformedResponseError(
                "Token response missing required refresh_token", field="refresh_token"
            )

        logger.info("Authorization code exchange successful")
        return token_response.to_token_state(issued_at=self.clock())

    async def refresh(
        self, client_id: str, client_secret: str, refresh_token: str
    ) -> TokenState:
        """Refresh an access token using a refresh token.

        Args:
            client_id: Spotify application client id
            client_secret: Spotify application client secret
            refresh_token: Refresh token from the current TokenState

        Returns:
            TokenState: New token state replacing the caller's current one

        Raises:
            TransportError: If the token endpoint could not be reached
            ProviderError: If the token endpoint returned a non-200 status
            MalformedResponseError: If the 200 response is not a valid token
        """
        refresh_request = RefreshTokenRequest(refresh_token=refresh_token)
        logger.debug(
            f"Refreshing access token at {self.token_endpoint} for client {client_id}"
        )

        token_response = await self._request_token(
            client_id, client_secret, refresh_request.to_form_data()
        )

        if not token_response.refresh_token:
            logger.debug("Refresh response carried no refresh_token")
        fallback = refresh_token if self.reuse_refresh_token else None

        logger.info("Access token refresh successful")
        return token_response.to_token_state(
            issued_at=self.clock(), refresh_token=fallback
        )

    async def _request_token(
        self, client_id: str, client_secret: str, form_data: dict[str, str]
    ) -> TokenResponse:
        headers = {
            "Authorization": basic_auth_header(client_id, client_secret),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        request = HttpRequest(url=self.token_endpoint, data=form_data, headers=headers)

        try:
            response = await self.transport.send(request)
        except TransportError:
            raise
        except (httpx.HTTPError, OSError) as e:
            raise TransportError(f"HTTP error during token request: {e}") from e

        return self._parse_token_response(response)

    def _parse_token_response(self, response: HttpResponse) -> TokenResponse:
        """Parse token endpoint response into TokenResponse.

        Raises:
            ProviderError: For any non-200 status, with the body attached
            MalformedResponseError: If a 200 body is not a valid token
        """
        if response.status_code != 200:
            error, error_description = _error_fields(response)
            logger.warning(
                f"Token request failed with {response.status_code}: "
                f"{error or 'unknown_error'}"
            )
            raise ProviderError(
                response.status_code, response.body, error, error_description
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Token response is not valid JSON: {e}"
            ) from e

        return TokenResponse.from_json(data)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> TokenExchange:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def _error_fields(response: HttpResponse) -> tuple[str | None, str | None]:
    """Pull RFC 6749 error fields out of an error body, when it is JSON."""
    try:
        data = response.json()
    except ValueError:
        return None, None
    if not isinstance(data, dict):
        return None, None

    error = data.get("error")
    description = data.get("error_description")
    # Spotify's Web API style: {"error": {"status": 400, "message": "..."}}
    if isinstance(error, dict):
        description = error.get("message")
        error = None
    return (
        error if isinstance(error, str) else None,
        description if isinstance(description, str) else None,
    )
