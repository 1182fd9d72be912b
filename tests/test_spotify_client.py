import base64
import json
from datetime import datetime, timedelta, timezone
from types import TracebackType
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from playlist_linker.clients import (
    SpotifyAPIError,
    SpotifyAuthenticationError,
    SpotifyClient,
    SpotifyClientConfigError,
    SpotifyTrack,
    build_spotify_client,
)
from playlist_linker.config.settings import AppSettings
from playlist_linker.session import CredentialSession


def _session(token: str = "user-token") -> CredentialSession:
    return CredentialSession(
        access_token=token,
        client_id="id",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


def _client() -> SpotifyClient:
    return SpotifyClient(
        client_id="spotify-id",
        client_secret="spotify-secret",
        redirect_uri="https://bot.example/callback",
    )


def test_build_spotify_client_creates_instance() -> None:
    settings = AppSettings.model_validate(
        {
            "SPOTIFY_CLIENT_ID": "client-id",
            "SPOTIFY_CLIENT_SECRET": "client-secret",
            "SPOTIFY_REDIRECT_URI": "https://bot.example/callback",
        }
    )

    client = build_spotify_client(settings)

    assert isinstance(client, SpotifyClient)
    assert client.client_id == "client-id"
    assert client.client_secret == "client-secret"
    assert client.redirect_uri == "https://bot.example/callback"


def test_build_spotify_client_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPOTIFY_CLIENT_ID", raising=False)
    monkeypatch.delenv("SPOTIFY_CLIENT_SECRET", raising=False)

    settings = AppSettings(_env_file=None)  # type: ignore[call-arg]

    with pytest.raises(SpotifyClientConfigError):
        build_spotify_client(settings)


def test_build_authorize_url_requests_playlist_scopes() -> None:
    url = _client().build_authorize_url(state="xyz")

    parts = urlsplit(url)
    params = parse_qs(parts.query)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://accounts.spotify.com/authorize"
    assert params["client_id"] == ["spotify-id"]
    assert params["response_type"] == ["code"]
    assert params["redirect_uri"] == ["https://bot.example/callback"]
    assert params["scope"] == ["playlist-modify-public playlist-modify-private"]
    assert params["state"] == ["xyz"]


def test_build_authorize_url_requires_redirect_uri() -> None:
    client = SpotifyClient(client_id="id", client_secret="secret")

    with pytest.raises(SpotifyClientConfigError):
        client.build_authorize_url()


@pytest.mark.asyncio
async def test_exchange_authorization_code_success() -> None:
    client = _client()
    expected_auth = base64.b64encode(b"spotify-id:spotify-secret").decode("ascii")

    async def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == client.token_url
        assert request.headers.get("Authorization") == f"Basic {expected_auth}"
        form = parse_qs(request.content.decode("utf-8"))
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["auth-code"]
        assert form["redirect_uri"] == ["https://bot.example/callback"]

        return httpx.Response(
            status_code=200,
            json={
                "access_token": "token123",
                "token_type": "Bearer",
                "expires_in": 3600,
                "scope": "playlist-modify-public",
            },
        )

    before = datetime.now(timezone.utc)
    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        session = await client.exchange_authorization_code("auth-code", http_client=http_client)

    assert isinstance(session, CredentialSession)
    assert session.access_token == "token123"
    assert session.client_id == "spotify-id"
    assert session.expires_at >= before + timedelta(seconds=3600)
    assert not session.is_expired()


@pytest.mark.asyncio
async def test_exchange_authorization_code_error_response() -> None:
    client = _client()

    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=400,
            json={"error": "invalid_grant", "error_description": "Invalid authorization code"},
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        with pytest.raises(SpotifyAuthenticationError) as exc:
            await client.exchange_authorization_code("bad", http_client=http_client)

    assert "Invalid authorization code" in str(exc.value)


@pytest.mark.asyncio
async def test_exchange_authorization_code_error_response_not_json() -> None:
    client = _client()

    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=401, text="invalid")

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        with pytest.raises(SpotifyAuthenticationError) as exc:
            await client.exchange_authorization_code("code", http_client=http_client)

    assert "invalid" in str(exc.value)


@pytest.mark.asyncio
async def test_exchange_authorization_code_rejects_missing_token() -> None:
    client = _client()

    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, json={"token_type": "Bearer"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        with pytest.raises(SpotifyAuthenticationError):
            await client.exchange_authorization_code("code", http_client=http_client)


@pytest.mark.asyncio
async def test_exchange_authorization_code_uses_context_client(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    client = _client()

    class DummyAsyncClient:
        def __init__(self, **kwargs: object) -> None:
            self.kwargs = kwargs
            self.calls: list[tuple[str, dict[str, str], dict[str, str]]] = []

        async def __aenter__(self) -> "DummyAsyncClient":
            return self

        async def __aexit__(
            self,
            exc_type: type[BaseException] | None,
            exc: BaseException | None,
            tb: TracebackType | None,
        ) -> bool:
            return False

        async def post(
            self,
            url: str,
            *,
            data: dict[str, str],
            headers: dict[str, str],
        ) -> httpx.Response:
            self.calls.append((url, data, headers))
            return httpx.Response(
                status_code=200,
                json={"access_token": "abc", "token_type": "Bearer", "expires_in": 60},
            )

    created_clients: list[DummyAsyncClient] = []

    def fake_async_client(*args: object, **kwargs: object) -> DummyAsyncClient:
        instance = DummyAsyncClient(**kwargs)
        created_clients.append(instance)
        return instance

    monkeypatch.setattr(httpx, "AsyncClient", fake_async_client)

    session = await client.exchange_authorization_code("code", timeout=1.5)

    assert session.access_token == "abc"
    assert len(created_clients) == 1
    dummy_client = created_clients[0]
    assert dummy_client.kwargs.get("timeout") == 1.5
    assert dummy_client.calls and dummy_client.calls[0][0] == client.token_url


@pytest.mark.asyncio
async def test_get_track_returns_track() -> None:
    client = _client()

    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/v1/tracks/xyz789"
        assert request.headers.get("Authorization") == "Bearer user-token"

        return httpx.Response(
            status_code=200,
            json={
                "id": "xyz789",
                "name": "My Song",
                "uri": "spotify:track:xyz789",
                "artists": [{"name": "Artist"}, "not-a-mapping"],
                "external_urls": {"spotify": "https://open.spotify.com/track/xyz789"},
            },
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        track = await client.get_track("xyz789", _session(), http_client=http_client)

    assert isinstance(track, SpotifyTrack)
    assert track.id == "xyz789"
    assert track.name == "My Song"
    assert track.uri == "spotify:track:xyz789"
    assert track.artists == ["Artist"]
    assert track.external_url == "https://open.spotify.com/track/xyz789"


@pytest.mark.asyncio
async def test_get_track_derives_uri_from_id_when_missing() -> None:
    client = _client()

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=200,
            json={"id": "abc", "name": "Track", "artists": None, "external_urls": "nope"},
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        track = await client.get_track("abc", _session(), http_client=http_client)

    assert track.uri == "spotify:track:abc"
    assert track.artists == []
    assert track.external_url == ""


@pytest.mark.asyncio
async def test_get_track_raises_api_error_with_detail() -> None:
    client = _client()

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            status_code=401,
            json={"error": {"status": 401, "message": "The access token expired"}},
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        with pytest.raises(SpotifyAPIError) as exc:
            await client.get_track("xyz", _session(), http_client=http_client)

    assert "The access token expired" in str(exc.value)
    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_get_track_raises_api_error_when_response_not_json() -> None:
    client = _client()

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=500, text="boom")

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        with pytest.raises(SpotifyAPIError) as exc:
            await client.get_track("xyz", _session(), http_client=http_client)

    assert "boom" in str(exc.value)


@pytest.mark.asyncio
async def test_get_track_raises_for_unexpected_payload_format() -> None:
    client = _client()

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, json=["unexpected"])

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        with pytest.raises(SpotifyAPIError) as exc:
            await client.get_track("xyz", _session(), http_client=http_client)

    assert "unexpected format" in str(exc.value)


@pytest.mark.asyncio
async def test_get_track_wraps_transport_errors() -> None:
    client = _client()

    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        with pytest.raises(SpotifyAPIError) as exc:
            await client.get_track("xyz", _session(), http_client=http_client)

    assert exc.value.status_code is None


@pytest.mark.asyncio
async def test_add_items_to_playlist_posts_uris() -> None:
    client = _client()
    captured: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code=201, json={"snapshot_id": "snap-1"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        snapshot = await client.add_items_to_playlist(
            "playlist-1", ["spotify:track:xyz789"], _session(), http_client=http_client
        )

    assert snapshot == "snap-1"
    assert len(captured) == 1
    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/playlists/playlist-1/tracks"
    assert json.loads(request.content) == {"uris": ["spotify:track:xyz789"]}


@pytest.mark.asyncio
async def test_add_items_to_playlist_raises_on_forbidden() -> None:
    client = _client()

    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=403, json={"error": {"message": "Forbidden"}})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        with pytest.raises(SpotifyAPIError) as exc:
            await client.add_items_to_playlist(
                "playlist-1", ["spotify:track:x"], _session(), http_client=http_client
            )

    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_add_items_to_playlist_requires_uris() -> None:
    with pytest.raises(ValueError):
        await _client().add_items_to_playlist("playlist-1", [], _session())


@pytest.mark.asyncio
async def test_get_playlist_track_uris_follows_pagination() -> None:
    client = _client()
    next_url = "https://api.spotify.com/v1/playlists/playlist-1/tracks?offset=100&limit=100"
    requested: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        if request.url.params.get("offset") == "100":
            return httpx.Response(
                status_code=200,
                json={"items": [{"track": {"uri": "spotify:track:b"}}], "next": None},
            )
        assert request.url.params["limit"] == "100"
        return httpx.Response(
            status_code=200,
            json={
                "items": [{"track": {"uri": "spotify:track:a"}}, {"track": None}],
                "next": next_url,
            },
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        uris = await client.get_playlist_track_uris("playlist-1", _session(), http_client=http_client)

    assert uris == ["spotify:track:a", "spotify:track:b"]
    assert len(requested) == 2
    assert requested[1] == next_url
