"""Message pipeline: link detection, resolution, identifier scrape and playlist sync."""

from __future__ import annotations

import asyncio
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import AsyncContextManager, Optional

import httpx

from playlist_linker.clients.resolver import ResolverClient
from playlist_linker.exceptions import PipelineError, ResolutionError
from playlist_linker.logger import get_logger
from playlist_linker.schemas import CanonicalResource
from playlist_linker.services.link_extractor import extract_music_link
from playlist_linker.services.playlist_sync import PlaylistMutationResult, PlaylistSyncEngine
from playlist_linker.services.scraper import IdentifierScraper

logger = get_logger(__name__)

AUTH_START_PATH = "/auth/spotify"


def build_reauth_advisory(auth_url: str = AUTH_START_PATH) -> str:
    """Return the chat advisory pointing users at the Spotify authorization flow."""

    return (
        "Could not add this track to the Spotify playlist. "
        f"Please re-authenticate with Spotify: {auth_url}"
    )


REAUTH_ADVISORY = build_reauth_advisory()


def public_auth_url(redirect_uri: Optional[str]) -> str:
    """Return the absolute authorization start URL served beside the OAuth callback.

    Falls back to the bare path when the redirect URI is missing or relative.
    """

    if not redirect_uri:
        return AUTH_START_PATH
    try:
        url = httpx.URL(redirect_uri)
    except httpx.InvalidURL:
        logger.warning("Cannot derive authorization URL from redirect URI %r", redirect_uri)
        return AUTH_START_PATH
    if not url.is_absolute_url:
        return AUTH_START_PATH
    return str(url.join(AUTH_START_PATH))


@dataclass(slots=True)
class PipelineOutcome:
    """Result of processing one message whose link resolved successfully."""

    link: str
    resource: CanonicalResource
    identifier: Optional[str] = None
    result: Optional[PlaylistMutationResult] = None
    error: Optional[PipelineError] = None

    @property
    def synced(self) -> bool:
        return self.result is not None


def build_replies(
    outcome: Optional[PipelineOutcome], *, advisory: str = REAUTH_ADVISORY
) -> list[str]:
    """Map an outcome to the chat replies: canonical URL, then an optional advisory."""

    if outcome is None:
        return []

    replies = [outcome.resource.url]
    if outcome.error is not None:
        replies.append(advisory)
    return replies


@dataclass(slots=True)
class LinkPipeline:
    """Run the full link-to-playlist flow for a single chat message.

    Invocations for different messages may run concurrently. When
    ``max_concurrency`` is set, at most that many run at once.
    """

    resolver: ResolverClient
    scraper: IdentifierScraper
    sync_engine: Optional[PlaylistSyncEngine] = None
    timeout: Optional[float] = 10.0
    max_concurrency: Optional[int] = None
    auth_url: str = AUTH_START_PATH
    _semaphore: Optional[asyncio.Semaphore] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_concurrency is not None:
            if self.max_concurrency < 1:
                raise ValueError("max_concurrency must be a positive integer")
            self._semaphore = asyncio.Semaphore(self.max_concurrency)

    def replies(self, outcome: Optional[PipelineOutcome]) -> list[str]:
        """Chat replies for ``outcome``, linking the advisory to ``auth_url``."""

        return build_replies(outcome, advisory=build_reauth_advisory(self.auth_url))

    async def process(
        self,
        content: Optional[str],
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> Optional[PipelineOutcome]:
        """Process a message and return the outcome, or ``None`` when there is nothing to reply."""

        link = extract_music_link(content)
        if link is None:
            logger.debug("No music link found in message")
            return None

        logger.info("Detected music link: %s", link)
        guard: AsyncContextManager[object] = self._semaphore or nullcontext()
        async with guard:
            return await self._run(link, http_client)

    async def _run(
        self, link: str, http_client: Optional[httpx.AsyncClient]
    ) -> Optional[PipelineOutcome]:
        try:
            resource = await self.resolver.resolve(
                link, http_client=http_client, timeout=self.timeout
            )
        except ResolutionError as exc:
            logger.warning("Resolution failed for %s: %s", link, exc)
            return None

        outcome = PipelineOutcome(link=link, resource=resource)
        logger.info("Resolved %s to %s %s", link, resource.type, resource.url)

        if not resource.spotify_available:
            logger.info("Resource %s is not available on Spotify; skipping sync", resource.url)
            return outcome

        try:
            outcome.identifier = await self.scraper.scrape(
                resource.url, http_client=http_client, timeout=self.timeout
            )
            if self.sync_engine is None:
                logger.warning("Spotify client not configured; skipping playlist sync")
                return outcome
            outcome.result = await self.sync_engine.add_track(
                outcome.identifier, http_client=http_client
            )
        except PipelineError as exc:
            logger.warning(
                "Playlist sync failed for %s (%s): %s", resource.url, type(exc).__name__, exc
            )
            outcome.error = exc

        return outcome
