"""Spotify application credentials and their environment configuration."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from spotify_oauth.models.errors import InvalidConfigError
from spotify_oauth.services.security import validate_redirect_uri

CLIENT_ID_ENV = "SPOTIFY_CLIENT_ID"
CLIENT_SECRET_ENV = "SPOTIFY_CLIENT_SECRET"
REDIRECT_URI_ENV = "SPOTIFY_REDIRECT_URI"


class ClientCredentials(BaseModel):
    """A registered Spotify application.

    The secret is kept out of the repr so it doesn't end up in logs.
    """

    client_id: str
    client_secret: str = Field(repr=False)
    redirect_uri: str

    @field_validator("client_id", "client_secret")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("redirect_uri")
    @classmethod
    def validate_redirect(cls, v: str) -> str:
        try:
            return validate_redirect_uri(v)
        except InvalidConfigError as e:
            raise ValueError(str(e)) from e

    @classmethod
    def create(cls, client_id: str, client_secret: str, redirect_uri: str) -> ClientCredentials:
        """Build credentials, reporting problems as InvalidConfigError."""
        try:
            return cls(
                client_id=client_id,
                client_secret=client_secret,
                redirect_uri=redirect_uri,
            )
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            raise InvalidConfigError(f"Invalid client configuration: {fields}") from e

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> ClientCredentials:
        """Load credentials from the environment.

        Reads SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET and SPOTIFY_REDIRECT_URI,
        after loading ``env_file`` (or a ``.env`` found from the working
        directory). Variables already set in the environment win.

        Raises:
            InvalidConfigError: If a variable is missing or invalid
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))

        missing = [
            name
            for name in (CLIENT_ID_ENV, CLIENT_SECRET_ENV, REDIRECT_URI_ENV)
            if not os.getenv(name)
        ]
        if missing:
            raise InvalidConfigError(
                f"Missing environment variables: {', '.join(missing)}"
            )

        return cls.create(
            client_id=os.environ[CLIENT_ID_ENV],
            client_secret=os.environ[CLIENT_SECRET_ENV],
            redirect_uri=os.environ[REDIRECT_URI_ENV],
        )
