"""Spotify authorization code flow endpoints."""

from typing import Optional

import httpx
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from playlist_linker.api.webhook import get_state_component
from playlist_linker.clients import (
    SpotifyAuthenticationError,
    SpotifyClient,
    SpotifyClientConfigError,
)
from playlist_linker.logger import get_logger
from playlist_linker.services import AUTH_START_PATH
from playlist_linker.session import SessionStore

router = APIRouter(tags=["auth"])
logger = get_logger(__name__)


def _require_spotify_client(request: Request) -> SpotifyClient:
    spotify_client = get_state_component(request, "spotify_client", SpotifyClient)
    if spotify_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Spotify client is not configured",
        )
    return spotify_client


@router.get(AUTH_START_PATH, summary="Start Spotify authorization")
async def start_spotify_authorization(request: Request) -> RedirectResponse:
    """Redirect the user to Spotify to grant playlist access."""

    spotify_client = _require_spotify_client(request)
    try:
        authorize_url = spotify_client.build_authorize_url()
    except SpotifyClientConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return RedirectResponse(authorize_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/callback", summary="Spotify authorization callback")
async def spotify_callback(
    request: Request,
    code: Optional[str] = None,
    error: Optional[str] = None,
) -> JSONResponse:
    """Exchange the authorization code and store the resulting session."""

    if error:
        logger.warning("Spotify authorization was denied: %s", error)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)
    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Missing authorization code"
        )

    spotify_client = _require_spotify_client(request)
    session_store = get_state_component(request, "session_store", SessionStore)
    if session_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session store is not configured",
        )

    http_client = get_state_component(request, "http_client", httpx.AsyncClient)
    try:
        session = await spotify_client.exchange_authorization_code(code, http_client=http_client)
    except SpotifyClientConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    except SpotifyAuthenticationError as exc:
        logger.exception("Spotify authorization code exchange failed")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    session_store.set(session)
    logger.info("Stored new Spotify session valid until %s", session.expires_at.isoformat())
    return JSONResponse(content={"status": "OK"})
