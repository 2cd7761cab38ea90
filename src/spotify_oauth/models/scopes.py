"""Spotify permission scopes.

Each member carries the provider's scope string as its value, so a change on
the provider side is a mapping update here and nothing else.

See https://developer.spotify.com/documentation/web-api/concepts/scopes
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class SpotifyScope(str, Enum):
    """Scopes recognized by the Spotify accounts service."""

    # Listening history
    USER_READ_RECENTLY_PLAYED = "user-read-recently-played"
    USER_TOP_READ = "user-top-read"
    USER_READ_PLAYBACK_POSITION = "user-read-playback-position"

    # Library
    USER_LIBRARY_MODIFY = "user-library-modify"
    USER_LIBRARY_READ = "user-library-read"

    # Playlists
    PLAYLIST_READ_PRIVATE = "playlist-read-private"
    PLAYLIST_MODIFY_PUBLIC = "playlist-modify-public"
    PLAYLIST_MODIFY_PRIVATE = "playlist-modify-private"
    PLAYLIST_READ_COLLABORATIVE = "playlist-read-collaborative"

    # Users
    USER_READ_EMAIL = "user-read-email"
    USER_READ_PRIVATE = "user-read-private"

    # Playback
    USER_READ_PLAYBACK_STATE = "user-read-playback-state"
    USER_MODIFY_PLAYBACK_STATE = "user-modify-playback-state"
    USER_READ_CURRENTLY_PLAYING = "user-read-currently-playing"
    APP_REMOTE_CONTROL = "app-remote-control"
    STREAMING = "streaming"

    # Follow
    USER_FOLLOW_READ = "user-follow-read"
    USER_FOLLOW_MODIFY = "user-follow-modify"

    # Images
    UGC_IMAGE_UPLOAD = "ugc-image-upload"

    def __str__(self) -> str:
        return self.value


def render_scopes(scopes: Iterable[SpotifyScope]) -> str:
    """Render scopes as the space-delimited string the provider expects.

    Keeps the caller's order and drops repeats, so the same input always
    produces the same URL.
    """
    return " ".join(scope.value for scope in dict.fromkeys(scopes))


def parse_scopes(value: str, strict: bool = True) -> list[SpotifyScope]:
    """Parse a space-delimited scope string back into scopes.

    With ``strict=False`` scopes this library doesn't know are skipped.

    Raises:
        ValueError: If strict and the string contains an unknown scope
    """
    parsed: dict[SpotifyScope, None] = {}
    for token in value.split():
        try:
            parsed[SpotifyScope(token)] = None
        except ValueError:
            if not strict:
                continue
            raise ValueError(f"Unknown Spotify scope: {token!r}") from None
    return list(parsed)
