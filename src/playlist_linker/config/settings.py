"""Application settings loaded from environment variables."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


IGNORE_DOTENV_ENV_VAR = "PLAYLIST_LINKER_IGNORE_DOTENV"

DEFAULT_RESOLVER_URL = "https://songwhip.com"
DEFAULT_SPOTIFY_LINK_MARKER = "Spotify"


class AppSettings(BaseSettings):
    """Centralized configuration values for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    telegram_bot_token: Optional[str] = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    telegram_channel_id: Optional[str] = Field(default=None, alias="TELEGRAM_CHANNEL_ID")
    spotify_client_id: Optional[str] = Field(default=None, alias="SPOTIFY_CLIENT_ID")
    spotify_client_secret: Optional[str] = Field(default=None, alias="SPOTIFY_CLIENT_SECRET")
    spotify_redirect_uri: Optional[str] = Field(default=None, alias="SPOTIFY_REDIRECT_URI")
    spotify_playlist_id: Optional[str] = Field(default=None, alias="SPOTIFY_PLAYLIST_ID")

    resolver_url: str = Field(default=DEFAULT_RESOLVER_URL, alias="RESOLVER_URL")
    spotify_link_marker: str = Field(
        default=DEFAULT_SPOTIFY_LINK_MARKER, alias="SPOTIFY_LINK_MARKER"
    )

    # Outbound HTTP behaviour. Zero retries and no dedupe keep the
    # one-shot semantics: a failed sync is retried by re-sharing the link.
    http_timeout_seconds: float = Field(default=10.0, gt=0, alias="HTTP_TIMEOUT_SECONDS")
    http_retries: int = Field(default=0, ge=0, alias="HTTP_RETRIES")
    playlist_dedupe: bool = Field(default=False, alias="PLAYLIST_DEDUPE")
    max_concurrent_pipelines: Optional[int] = Field(
        default=None, gt=0, alias="MAX_CONCURRENT_PIPELINES"
    )


@lru_cache
def get_settings(*, ignore_dotenv: Optional[bool] = None) -> AppSettings:
    """Return a cached instance of application settings.

    Parameters
    ----------
    ignore_dotenv:
        Explicitly control whether the `.env` file should be ignored. When ``None``
        (the default), the environment variable ``PLAYLIST_LINKER_IGNORE_DOTENV``
        controls the behavior (case-insensitive truthy values disable the file).
    """

    if ignore_dotenv is None:
        env_override = os.getenv(IGNORE_DOTENV_ENV_VAR, "")
        ignore_dotenv = env_override.lower() in {"1", "true", "yes", "on"}

    if ignore_dotenv:
        return AppSettings(_env_file=None)  # type: ignore[call-arg]

    return AppSettings()
