"""Append scraped tracks to the configured Spotify playlist."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from playlist_linker.clients.spotify import SpotifyAPIError, SpotifyClient, SpotifyTrack
from playlist_linker.exceptions import (
    NotAuthenticated,
    PlaylistAppendFailed,
    SessionExpired,
    TrackLookupFailed,
)
from playlist_linker.logger import get_logger
from playlist_linker.session import CredentialSession, SessionStore

logger = get_logger(__name__)


@dataclass(slots=True)
class PlaylistMutationResult:
    track: SpotifyTrack
    playlist_id: str
    snapshot_id: str = ""
    skipped_duplicate: bool = False


@dataclass(slots=True)
class PlaylistSyncEngine:
    """Look up a track by identifier and append it to a single playlist.

    Appends are not deduplicated unless ``dedupe`` is enabled, so sharing the
    same link twice adds the track twice.
    """

    spotify_client: SpotifyClient
    session_store: SessionStore
    playlist_id: Optional[str]
    dedupe: bool = False
    timeout: Optional[float] = 10.0

    def require_session(self) -> CredentialSession:
        """Return the stored session or raise if it is missing or expired."""

        session = self.session_store.current()
        if session is None:
            raise NotAuthenticated("No Spotify session; authenticate via /auth/spotify")
        if session.is_expired():
            raise SessionExpired(
                f"Spotify session expired at {session.expires_at.isoformat()}"
            )
        return session

    async def add_track(
        self,
        identifier: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> PlaylistMutationResult:
        session = self.require_session()
        if not self.playlist_id:
            raise PlaylistAppendFailed("No target playlist configured (SPOTIFY_PLAYLIST_ID)")

        try:
            track = await self.spotify_client.get_track(
                identifier, session, http_client=http_client, timeout=self.timeout
            )
        except SpotifyAPIError as exc:
            raise TrackLookupFailed(f"Spotify track lookup failed for {identifier}: {exc}") from exc

        try:
            if self.dedupe:
                existing = await self.spotify_client.get_playlist_track_uris(
                    self.playlist_id, session, http_client=http_client, timeout=self.timeout
                )
                if track.uri in existing:
                    logger.info(
                        "Track %s already in playlist %s; skipping append",
                        track.uri,
                        self.playlist_id,
                    )
                    return PlaylistMutationResult(
                        track=track, playlist_id=self.playlist_id, skipped_duplicate=True
                    )

            snapshot_id = await self.spotify_client.add_items_to_playlist(
                self.playlist_id,
                [track.uri],
                session,
                http_client=http_client,
                timeout=self.timeout,
            )
        except SpotifyAPIError as exc:
            raise PlaylistAppendFailed(
                f"Appending {track.uri} to playlist {self.playlist_id} failed: {exc}"
            ) from exc

        logger.info("Added %s (%s) to playlist %s", track.name, track.uri, self.playlist_id)
        return PlaylistMutationResult(
            track=track, playlist_id=self.playlist_id, snapshot_id=snapshot_id
        )
