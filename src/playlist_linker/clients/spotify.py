"""Thin wrapper around the Spotify Web API and accounts service."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from http import HTTPStatus
from types import MappingProxyType
from typing import Any, Collection, Mapping, Optional, Sequence, cast
from urllib.parse import quote

import httpx

from playlist_linker.config.settings import AppSettings
from playlist_linker.session import CredentialSession

PLAYLIST_MODIFY_SCOPES: tuple[str, ...] = (
    "playlist-modify-public",
    "playlist-modify-private",
)


class SpotifyClientConfigError(ValueError):
    """Raised when Spotify credentials are missing or invalid."""


class SpotifyAuthenticationError(RuntimeError):
    """Raised when Spotify fails to issue an access token."""


class SpotifyAPIError(RuntimeError):
    """Raised when a Spotify Web API request fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class SpotifyTrack:
    """Minimal representation of a Spotify track."""

    id: str
    name: str
    uri: str
    artists: list[str] = field(default_factory=list)
    external_url: str = ""


_EMPTY_MAPPING: Mapping[str, Any] = MappingProxyType({})


def _error_detail(response: httpx.Response) -> str:
    """Extract the most useful error description from a Spotify error response."""

    try:
        payload_obj = response.json()
    except ValueError:
        payload_obj = {}

    if isinstance(payload_obj, Mapping):
        payload_map = cast(Mapping[str, Any], payload_obj)
    else:
        payload_map = _EMPTY_MAPPING

    error_obj: Any = payload_map.get("error") if payload_map else None
    if isinstance(error_obj, Mapping):
        error_map = cast(Mapping[str, Any], error_obj)
        message = error_map.get("message")
        return str(message) if message is not None else str(dict(error_map))
    return str(error_obj or response.text or "Unknown error")


def _parse_track(payload_map: Mapping[str, Any]) -> SpotifyTrack:
    artists_raw = payload_map.get("artists")
    artists: list[str] = []
    if isinstance(artists_raw, Sequence) and not isinstance(artists_raw, str):
        for artist in cast(Sequence[Any], artists_raw):
            if not isinstance(artist, Mapping):
                continue
            name_value: Any = cast(Mapping[str, Any], artist).get("name")
            if isinstance(name_value, str):
                artists.append(name_value)

    external_urls = payload_map.get("external_urls")
    if isinstance(external_urls, Mapping):
        spotify_url: Any = cast(Mapping[str, Any], external_urls).get("spotify")
        external_url = str(spotify_url) if spotify_url is not None else ""
    else:
        external_url = ""

    track_id = str(payload_map.get("id") or "")
    uri = payload_map.get("uri")
    if not isinstance(uri, str) or not uri:
        if not track_id:
            raise SpotifyAPIError("Spotify track response did not include a uri or id")
        uri = f"spotify:track:{track_id}"

    return SpotifyTrack(
        id=track_id,
        name=str(payload_map.get("name") or ""),
        uri=uri,
        artists=artists,
        external_url=external_url,
    )


@dataclass(slots=True)
class SpotifyClient:
    """Spotify client acting on behalf of a user session."""

    client_id: str
    client_secret: str
    redirect_uri: Optional[str] = None
    base_url: str = "https://api.spotify.com/v1"
    authorize_url: str = "https://accounts.spotify.com/authorize"
    token_url: str = "https://accounts.spotify.com/api/token"

    def build_authorize_url(
        self,
        scopes: Collection[str] = PLAYLIST_MODIFY_SCOPES,
        *,
        state: Optional[str] = None,
    ) -> str:
        """Return the URL a user must visit to grant playlist access."""

        if not self.redirect_uri:
            raise SpotifyClientConfigError("A redirect URI is required for the authorization flow")

        params: dict[str, str] = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(scopes),
        }
        if state:
            params["state"] = state
        return str(httpx.URL(self.authorize_url, params=params))

    async def exchange_authorization_code(
        self,
        code: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> CredentialSession:
        """Trade an authorization code for a user access token."""

        if not code.strip():
            raise ValueError("Authorization code must be non-empty")
        if not self.redirect_uri:
            raise SpotifyClientConfigError("A redirect URI is required for the authorization flow")

        authorization = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode("utf-8"))
        headers = {
            "Authorization": f"Basic {authorization.decode('ascii')}",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        }

        async def _request_token(client: httpx.AsyncClient) -> CredentialSession:
            try:
                response = await client.post(self.token_url, data=data, headers=headers)
            except httpx.HTTPError as exc:
                raise SpotifyAuthenticationError(
                    f"Spotify token request could not be sent: {exc}"
                ) from exc

            if response.status_code != HTTPStatus.OK:
                message: str
                try:
                    body = response.json()
                    message = body.get("error_description") or body.get("error") or "Unknown error"
                except (ValueError, AttributeError):
                    message = response.text or "Unknown error"

                raise SpotifyAuthenticationError(
                    "Failed to obtain Spotify access token: "
                    f"status={response.status_code}, detail={message}"
                )

            try:
                payload = response.json()
                return CredentialSession.from_token_response(payload, client_id=self.client_id)
            except (ValueError, AttributeError, TypeError) as exc:
                raise SpotifyAuthenticationError(
                    "Spotify token response had unexpected format"
                ) from exc

        if http_client is not None:
            return await _request_token(http_client)

        async with httpx.AsyncClient(timeout=timeout) as client:
            return await _request_token(client)

    async def get_track(
        self,
        track_id: str,
        session: CredentialSession,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> SpotifyTrack:
        """Fetch the track with the given Spotify identifier."""

        if not track_id:
            raise ValueError("Spotify track id must be non-empty")

        payload_map = await self._request_json(
            "GET",
            f"{self.base_url}/tracks/{quote(track_id, safe='')}",
            session=session,
            operation="track lookup",
            http_client=http_client,
            timeout=timeout,
        )
        return _parse_track(payload_map)

    async def add_items_to_playlist(
        self,
        playlist_id: str,
        uris: Sequence[str],
        session: CredentialSession,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> str:
        """Append ``uris`` to the playlist and return the new snapshot id."""

        if not uris:
            raise ValueError("At least one URI is required")

        payload_map = await self._request_json(
            "POST",
            f"{self.base_url}/playlists/{quote(playlist_id, safe='')}/tracks",
            session=session,
            operation="playlist append",
            json={"uris": list(uris)},
            expected=(HTTPStatus.OK, HTTPStatus.CREATED),
            http_client=http_client,
            timeout=timeout,
        )
        return str(payload_map.get("snapshot_id") or "")

    async def get_playlist_track_uris(
        self,
        playlist_id: str,
        session: CredentialSession,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> list[str]:
        """Return the URIs of every track in the playlist, following pagination."""

        url: Optional[str] = f"{self.base_url}/playlists/{quote(playlist_id, safe='')}/tracks"
        params: Optional[dict[str, str]] = {"fields": "items(track(uri)),next", "limit": "100"}
        uris: list[str] = []

        while url:
            page = await self._request_json(
                "GET",
                url,
                session=session,
                operation="playlist listing",
                params=params,
                http_client=http_client,
                timeout=timeout,
            )
            items_raw = page.get("items")
            if isinstance(items_raw, Sequence) and not isinstance(items_raw, str):
                for item in cast(Sequence[Any], items_raw):
                    if not isinstance(item, Mapping):
                        continue
                    track = cast(Mapping[str, Any], item).get("track")
                    if isinstance(track, Mapping):
                        uri = cast(Mapping[str, Any], track).get("uri")
                        if isinstance(uri, str):
                            uris.append(uri)

            next_url = page.get("next")
            url = next_url if isinstance(next_url, str) and next_url else None
            # The next link already carries the query string.
            params = None

        return uris

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        session: CredentialSession,
        operation: str,
        params: Optional[Mapping[str, str]] = None,
        json: Optional[Mapping[str, Any]] = None,
        expected: Collection[int] = (HTTPStatus.OK,),
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> Mapping[str, Any]:
        headers = {
            "Authorization": session.authorization_header(),
            "Accept": "application/json",
        }

        async def _perform(client: httpx.AsyncClient) -> Mapping[str, Any]:
            try:
                response = await client.request(
                    method, url, params=params, json=json, headers=headers
                )
            except httpx.HTTPError as exc:
                raise SpotifyAPIError(
                    f"Spotify {operation} request could not be sent: {exc}"
                ) from exc

            if response.status_code not in expected:
                raise SpotifyAPIError(
                    f"Spotify {operation} request failed: "
                    f"status={response.status_code}, detail={_error_detail(response)}",
                    status_code=response.status_code,
                )

            try:
                payload_obj = response.json()
            except ValueError as exc:
                raise SpotifyAPIError(
                    f"Spotify {operation} response was not valid JSON",
                    status_code=response.status_code,
                ) from exc

            if not isinstance(payload_obj, Mapping):
                raise SpotifyAPIError(
                    f"Spotify {operation} response had unexpected format",
                    status_code=response.status_code,
                )
            return cast(Mapping[str, Any], payload_obj)

        if http_client is not None:
            return await _perform(http_client)

        async with httpx.AsyncClient(timeout=timeout) as client:
            return await _perform(client)


def build_spotify_client(settings: AppSettings) -> SpotifyClient:
    """Create a SpotifyClient instance from application settings."""

    if not settings.spotify_client_id or not settings.spotify_client_secret:
        raise SpotifyClientConfigError(
            "Spotify client credentials are required to instantiate SpotifyClient"
        )

    return SpotifyClient(
        client_id=settings.spotify_client_id,
        client_secret=settings.spotify_client_secret,
        redirect_uri=settings.spotify_redirect_uri,
    )
