"""Authorization flow orchestration service.

Builds authorization requests and turns the provider's redirect back into
an authorization code, enforcing the state check on the way.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from urllib.parse import parse_qs, urlparse

from spotify_oauth.models.errors import AuthorizationDeniedError, CallbackError
from spotify_oauth.models.flow import (
    SPOTIFY_AUTHORIZE_URL,
    AuthorizationRequest,
    AuthorizationResponse,
)
from spotify_oauth.models.scopes import SpotifyScope
from spotify_oauth.services.security import validate_state

logger = logging.getLogger(__name__)


class AuthorizationFlow:
    """Starts authorization requests and validates their callbacks."""

    def __init__(self, authorization_endpoint: str = SPOTIFY_AUTHORIZE_URL):
        self.authorization_endpoint = authorization_endpoint

    def start(
        self,
        client_id: str,
        redirect_uri: str,
        scopes: Sequence[SpotifyScope] = (),
        show_dialog: bool | None = None,
        state: str | None = None,
    ) -> AuthorizationRequest:
        """Create the authorization request for a new login attempt.

        Keep the returned request: its ``state`` is needed to validate the
        callback.

        Raises:
            InvalidConfigError: If client_id or redirect_uri is unusable
        """
        request = AuthorizationRequest(
            client_id=client_id,
            redirect_uri=redirect_uri,
            scopes=scopes,
            show_dialog=show_dialog,
            state=state,
            authorization_endpoint=self.authorization_endpoint,
        )
        logger.info(f"Generated authorization request for client {client_id}")
        return request

    def handle_callback(self, callback_url: str, expected_state: str) -> str:
        """Validate a callback URL and return its authorization code.

        Args:
            callback_url: Full redirect URL received from the provider
            expected_state: State of the originating AuthorizationRequest

        Returns:
            The authorization code

        Raises:
            CallbackError: If the URL lacks state or a code/error
            StateMismatchError: If the state doesn't match
            AuthorizationDeniedError: If the user or provider refused access
        """
        return self.check_response(parse_callback_url(callback_url), expected_state)

    def check_response(
        self, auth_response: AuthorizationResponse, expected_state: str
    ) -> str:
        """Validate an already parsed callback and return its authorization code.

        Raises:
            StateMismatchError: If the state doesn't match
            AuthorizationDeniedError: If the user or provider refused access
        """
        # Validate state even for error responses
        validate_state(expected_state, auth_response.state)

        if auth_response.is_error():
            logger.warning(f"Authorization callback contained error: {auth_response.error}")
            raise AuthorizationDeniedError(auth_response.error)

        logger.info("Authorization callback successful - received authorization code")
        return auth_response.code


def parse_callback_url(callback_url: str) -> AuthorizationResponse:
    """Parse a redirect URL into an AuthorizationResponse.

    Raises:
        CallbackError: If the URL is malformed or lacks the state or
            response parameters
    """
    try:
        parsed = urlparse(callback_url)
    except ValueError as e:
        raise CallbackError(f"Failed to parse callback URL: {e}") from e

    query_params = parse_qs(parsed.query)

    def get_single_param(key: str) -> str | None:
        values = query_params.get(key, [])
        return values[0] if values else None

    state = get_single_param("state")
    code = get_single_param("code")
    error = get_single_param("error")

    has_response = code is not None or error is not None
    if state is None and not has_response:
        raise CallbackError(
            "Does not contain any state or response type query parameters."
        )
    if state is None:
        raise CallbackError("Does not contain any state type query parameters.")
    if not has_response:
        raise CallbackError("Does not contain any response type query parameters.")

    if code is not None:
        return AuthorizationResponse(code=code, state=state)
    return AuthorizationResponse(error=error, state=state)
