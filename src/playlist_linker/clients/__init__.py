"""Client integrations for external services."""

from .resolver import ResolverClient
from .spotify import (
    PLAYLIST_MODIFY_SCOPES,
    SpotifyAPIError,
    SpotifyAuthenticationError,
    SpotifyClient,
    SpotifyClientConfigError,
    SpotifyTrack,
    build_spotify_client,
)
from .telegram import TelegramAPIError, TelegramClient, build_telegram_client

__all__ = [
    "PLAYLIST_MODIFY_SCOPES",
    "ResolverClient",
    "SpotifyAPIError",
    "SpotifyAuthenticationError",
    "SpotifyClient",
    "SpotifyClientConfigError",
    "SpotifyTrack",
    "build_spotify_client",
    "TelegramAPIError",
    "TelegramClient",
    "build_telegram_client",
]
