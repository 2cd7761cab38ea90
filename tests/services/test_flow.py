"""Tests for authorization flow start and callback handling."""

from urllib.parse import parse_qs, urlparse

import pytest

from spotify_oauth.models.errors import (
    AuthorizationDeniedError,
    CallbackError,
    InvalidConfigError,
    StateMismatchError,
)
from spotify_oauth.models.flow import AuthorizationResponse
from spotify_oauth.models.scopes import SpotifyScope
from spotify_oauth.services.flow import AuthorizationFlow, parse_callback_url


class TestStartAuthorization:
    def setup_method(self):
        # Arrange
        self.flow = AuthorizationFlow()

    def test_start_generates_request_with_state(self):
        # Act
        request = self.flow.start(
            "client-123",
            "http://localhost:8888/callback",
            scopes=[SpotifyScope.STREAMING],
        )

        # Assert
        query_params = parse_qs(urlparse(request.build_authorization_url()).query)
        assert query_params["client_id"] == ["client-123"]
        assert query_params["state"] == [request.state]
        assert query_params["scope"] == ["streaming"]
        assert len(request.state) == 32

    def test_start_with_caller_state(self):
        request = self.flow.start("client-123", "https://app/cb", state="given")

        assert request.state == "given"

    def test_custom_authorization_endpoint(self):
        flow = AuthorizationFlow(authorization_endpoint="https://auth.example.com/authorize")

        request = flow.start("client-123", "https://app/cb")

        assert request.build_authorization_url().startswith(
            "https://auth.example.com/authorize?client_id=client-123&"
        )

    def test_invalid_config_raises(self):
        with pytest.raises(InvalidConfigError):
            self.flow.start("", "https://app/cb")


class TestParseCallbackUrl:
    def test_parse_code(self):
        response = parse_callback_url(
            "http://localhost:8888/callback?code=AQD0yXvFEOvw&state=sN"
        )

        assert response.is_success()
        assert response.code == "AQD0yXvFEOvw"
        assert response.state == "sN"
        assert response.error is None

    def test_parse_error(self):
        response = parse_callback_url(
            "http://localhost:8888/callback?error=access_denied&state=sN"
        )

        assert response.is_error()
        assert response.code is None
        assert response.error == "access_denied"

    def test_missing_response_parameter(self):
        with pytest.raises(CallbackError) as exc_info:
            parse_callback_url("http://localhost:8888/callback?state=sN")

        assert str(exc_info.value) == (
            "Does not contain any response type query parameters."
        )

    def test_missing_state_parameter(self):
        with pytest.raises(CallbackError) as exc_info:
            parse_callback_url("http://localhost:8888/callback?code=abc")

        assert str(exc_info.value) == "Does not contain any state type query parameters."

    def test_missing_everything(self):
        with pytest.raises(CallbackError) as exc_info:
            parse_callback_url("http://localhost:8888/callback")

        assert str(exc_info.value) == (
            "Does not contain any state or response type query parameters."
        )


class TestHandleCallback:
    def setup_method(self):
        # Arrange
        self.flow = AuthorizationFlow()

    def test_returns_code_when_state_matches(self):
        code = self.flow.handle_callback(
            "https://app/cb?code=the-code&state=expected", "expected"
        )

        assert code == "the-code"

    def test_state_mismatch_raises(self):
        with pytest.raises(StateMismatchError):
            self.flow.handle_callback("https://app/cb?code=the-code&state=forged", "expected")

    def test_state_mismatch_wins_over_provider_error(self):
        with pytest.raises(StateMismatchError):
            self.flow.handle_callback(
                "https://app/cb?error=access_denied&state=forged", "expected"
            )

    def test_denied_authorization_raises(self):
        with pytest.raises(AuthorizationDeniedError) as exc_info:
            self.flow.handle_callback(
                "https://app/cb?error=access_denied&state=expected", "expected"
            )

        assert exc_info.value.error == "access_denied"


class TestCheckResponse:
    def setup_method(self):
        # Arrange
        self.flow = AuthorizationFlow()

    def test_returns_code_of_parsed_response(self):
        auth_response = AuthorizationResponse(code="the-code", state="expected")

        assert self.flow.check_response(auth_response, "expected") == "the-code"

    def test_state_mismatch_raises(self):
        auth_response = AuthorizationResponse(code="the-code", state="forged")

        with pytest.raises(StateMismatchError):
            self.flow.check_response(auth_response, "expected")

    def test_denied_authorization_raises(self):
        auth_response = AuthorizationResponse(error="access_denied", state="expected")

        with pytest.raises(AuthorizationDeniedError):
            self.flow.check_response(auth_response, "expected")
