"""Tests for token state expiry tracking and serialization."""

import json

import pytest

from spotify_oauth.models.errors import MalformedResponseError
from spotify_oauth.models.scopes import SpotifyScope
from spotify_oauth.models.tokens import TokenResponse, TokenState

ISSUED_AT = 1_700_000_000.0


def make_token(**overrides) -> TokenState:
    fields = {
        "access_token": "AT",
        "token_type": "Bearer",
        "scope": "user-read-private user-read-email",
        "expires_in": 3600,
        "refresh_token": "RT",
        "issued_at": ISSUED_AT,
    }
    fields.update(overrides)
    return TokenState.issue(**fields)


class TestTokenExpiry:
    def test_expires_at_derived_from_issuance(self):
        token = make_token()

        assert token.expires_at == ISSUED_AT + 3600

    def test_valid_one_second_before_expiry(self):
        token = make_token()

        assert not token.is_expired(ISSUED_AT + 3599)

    def test_expired_exactly_at_expiry(self):
        token = make_token()

        assert token.is_expired(ISSUED_AT + 3600)
        assert token.is_expired(ISSUED_AT + 7200)

    def test_zero_lifetime_is_immediately_expired(self):
        token = make_token(expires_in=0)

        assert token.is_expired(ISSUED_AT)

    def test_seconds_until_expiry(self):
        token = make_token()

        assert token.seconds_until_expiry(ISSUED_AT + 600) == 3000
        assert token.seconds_until_expiry(ISSUED_AT + 9000) == 0.0


class TestTokenHelpers:
    def test_can_refresh(self):
        assert make_token().can_refresh()
        assert not make_token(refresh_token=None).can_refresh()

    def test_authorization_header(self):
        assert make_token().authorization_header() == "Bearer AT"

    def test_granted_scopes(self):
        assert make_token().granted_scopes() == [
            SpotifyScope.USER_READ_PRIVATE,
            SpotifyScope.USER_READ_EMAIL,
        ]

    def test_granted_scopes_skips_unknown_scopes(self):
        token = make_token(scope="user-read-birthdate streaming")

        assert token.granted_scopes() == [SpotifyScope.STREAMING]

    def test_token_state_is_immutable(self):
        token = make_token()

        with pytest.raises(AttributeError):
            token.access_token = "other"


class TestTokenSerialization:
    def test_record_uses_fixed_field_names(self):
        # Act
        record = make_token().to_serializable()

        # Assert
        assert record == {
            "access_token": "AT",
            "token_type": "Bearer",
            "scope": "user-read-private user-read-email",
            "expires_in": 3600,
            "expires_at": ISSUED_AT + 3600,
            "refresh_token": "RT",
        }

    def test_round_trip_preserves_all_fields(self):
        # Arrange
        token = make_token(issued_at=1_700_000_123.456789)

        # Act
        restored = TokenState.from_serializable(token.to_serializable())

        # Assert
        assert restored == token
        assert restored.expires_at == token.expires_at

    def test_round_trip_through_json(self):
        # Arrange
        token = make_token(refresh_token=None, issued_at=1_234.5678)

        # Act
        restored = TokenState.from_serializable(
            json.loads(json.dumps(token.to_serializable()))
        )

        # Assert
        assert restored == token

    def test_expires_at_is_not_recomputed(self):
        # Arrange
        record = make_token().to_serializable()
        record["expires_at"] = 42.0

        # Act
        restored = TokenState.from_serializable(record)

        # Assert
        assert restored.expires_at == 42.0

    def test_missing_field_rejected(self):
        # Arrange
        record = make_token().to_serializable()
        del record["expires_at"]

        # Act & Assert
        with pytest.raises(MalformedResponseError) as exc_info:
            TokenState.from_serializable(record)

        assert exc_info.value.field == "expires_at"

    def test_wrong_type_rejected(self):
        record = make_token().to_serializable()
        record["expires_in"] = "soon"

        with pytest.raises(MalformedResponseError):
            TokenState.from_serializable(record)


class TestTokenResponse:
    def test_valid_response(self):
        # Act
        response = TokenResponse.from_json(
            {
                "access_token": "AT",
                "token_type": "Bearer",
                "scope": "streaming",
                "expires_in": 3600,
                "refresh_token": "RT",
            }
        )
        token = response.to_token_state(issued_at=ISSUED_AT)

        # Assert
        assert token.access_token == "AT"
        assert token.refresh_token == "RT"
        assert token.expires_at == ISSUED_AT + 3600

    def test_fallback_refresh_token_used_when_absent(self):
        response = TokenResponse.from_json(
            {"access_token": "AT", "token_type": "Bearer", "expires_in": 60}
        )

        token = response.to_token_state(issued_at=0.0, refresh_token="OLD")

        assert token.refresh_token == "OLD"
        assert token.scope == ""

    @pytest.mark.parametrize(
        "body,field",
        [
            ({"token_type": "Bearer", "expires_in": 3600}, "access_token"),
            ({"access_token": "AT", "expires_in": 3600}, "token_type"),
            ({"access_token": "AT", "token_type": "Bearer"}, "expires_in"),
            (
                {"access_token": "AT", "token_type": "Bearer", "expires_in": "3600"},
                "expires_in",
            ),
            (
                {"access_token": 123, "token_type": "Bearer", "expires_in": 3600},
                "access_token",
            ),
            (
                {"access_token": "AT", "token_type": "Bearer", "expires_in": -1},
                "expires_in",
            ),
        ],
    )
    def test_schema_violations_name_the_field(self, body, field):
        with pytest.raises(MalformedResponseError) as exc_info:
            TokenResponse.from_json(body)

        assert exc_info.value.field == field

    def test_non_object_body_rejected(self):
        with pytest.raises(MalformedResponseError):
            TokenResponse.from_json(["access_token"])
