from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from playlist_linker.api import auth_router, webhook_router
from playlist_linker.clients import ResolverClient, build_spotify_client, build_telegram_client
from playlist_linker.config.settings import AppSettings, get_settings
from playlist_linker.logger import get_logger
from playlist_linker.services import (
    IdentifierScraper,
    LinkPipeline,
    PlaylistSyncEngine,
    public_auth_url,
)
from playlist_linker.session import SessionStore

logger = get_logger(__name__)


def build_http_client(settings: AppSettings) -> httpx.AsyncClient:
    """Create the shared outbound HTTP client."""

    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        transport=httpx.AsyncHTTPTransport(retries=settings.http_retries),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""

    logger.info("Playlist Linker service is starting up")
    settings = get_settings()
    validate_critical_settings(settings)

    http_client = build_http_client(settings)
    session_store = SessionStore()
    app.state.http_client = http_client
    app.state.session_store = session_store
    app.state.telegram_client = build_telegram_client(
        settings.telegram_bot_token, settings.telegram_channel_id
    )

    sync_engine = None
    if settings.spotify_client_id and settings.spotify_client_secret:
        spotify_client = build_spotify_client(settings)
        app.state.spotify_client = spotify_client
        sync_engine = PlaylistSyncEngine(
            spotify_client=spotify_client,
            session_store=session_store,
            playlist_id=settings.spotify_playlist_id,
            dedupe=settings.playlist_dedupe,
            timeout=settings.http_timeout_seconds,
        )
        logger.info("Spotify client initialized successfully")
    else:
        app.state.spotify_client = None
        logger.info("Spotify client not initialized due to missing credentials")

    app.state.pipeline = LinkPipeline(
        resolver=ResolverClient(base_url=settings.resolver_url),
        scraper=IdentifierScraper(marker=settings.spotify_link_marker),
        sync_engine=sync_engine,
        timeout=settings.http_timeout_seconds,
        max_concurrency=settings.max_concurrent_pipelines,
        auth_url=public_auth_url(settings.spotify_redirect_uri),
    )

    try:
        yield
    finally:
        await http_client.aclose()
        app.state.http_client = None
        app.state.spotify_client = None
        app.state.pipeline = None
        logger.info("Playlist Linker service is shutting down")


app = FastAPI(title="Playlist Linker", version="0.1.0", lifespan=lifespan)
app.include_router(webhook_router)
app.include_router(auth_router)


@app.get("/health", summary="Health check")
async def health_check() -> JSONResponse:
    """Simple endpoint to verify the service is running."""

    return JSONResponse(content={"status": "ok"})


def validate_critical_settings(settings: AppSettings) -> None:
    """Ensure critical settings are present and non-empty."""

    missing: list[str] = []
    if not settings.telegram_bot_token:
        missing.append("TELEGRAM_BOT_TOKEN")
    if not settings.spotify_client_id:
        missing.append("SPOTIFY_CLIENT_ID")
    if not settings.spotify_client_secret:
        missing.append("SPOTIFY_CLIENT_SECRET")
    if not settings.spotify_redirect_uri:
        missing.append("SPOTIFY_REDIRECT_URI")
    if not settings.spotify_playlist_id:
        missing.append("SPOTIFY_PLAYLIST_ID")

    if missing:
        logger.warning(
            "Missing recommended environment variables: %s", ", ".join(missing)
        )
    else:
        logger.info("All critical environment variables are present")
