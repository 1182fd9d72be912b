"""Recover a Spotify track identifier from a canonical resource page.

The resolver does not return service-specific identifiers, so the canonical
page is fetched and its "Listen on Spotify" style anchor is read instead.
This depends entirely on third-party markup and every failure is reported
as a :class:`~playlist_linker.exceptions.ScrapeError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup

from playlist_linker.config.settings import DEFAULT_SPOTIFY_LINK_MARKER
from playlist_linker.exceptions import (
    IdentifierMalformed,
    IdentifierNotFound,
    ScrapeUnavailable,
)
from playlist_linker.logger import get_logger

logger = get_logger(__name__)


def identifier_from_href(href: Optional[str]) -> str:
    """Return the final path segment of ``href``.

    Query strings and fragments are not part of the identifier.
    """

    if not href or not href.strip():
        raise IdentifierMalformed("Matching anchor has no href")

    path = urlsplit(href.strip()).path
    identifier = path.rsplit("/", 1)[-1]
    if not identifier:
        raise IdentifierMalformed(f"Anchor href has no final path segment: {href!r}")
    return identifier


def extract_identifier(html: str, marker: str) -> Optional[str]:
    """Return the identifier behind the first anchor whose text contains ``marker``.

    Anchors are scanned in document order and the marker match is
    case-sensitive. ``None`` means no anchor matched.
    """

    soup = BeautifulSoup(html, "html.parser")
    for anchor in soup.find_all("a"):
        if marker not in anchor.get_text():
            continue
        href = anchor.get("href")
        return identifier_from_href(href if isinstance(href, str) else None)
    return None


@dataclass(slots=True)
class IdentifierScraper:
    """Fetch a canonical page and extract the streaming-service identifier."""

    marker: str = DEFAULT_SPOTIFY_LINK_MARKER

    async def scrape(
        self,
        page_url: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> str:
        html = await self.fetch_page(page_url, http_client=http_client, timeout=timeout)

        identifier = extract_identifier(html, self.marker)
        if identifier is None:
            raise IdentifierNotFound(
                f"No anchor containing {self.marker!r} found on {page_url}"
            )

        logger.debug("Scraped identifier %s from %s", identifier, page_url)
        return identifier

    async def fetch_page(
        self,
        page_url: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> str:
        async def _get(client: httpx.AsyncClient) -> str:
            try:
                response = await client.get(page_url, follow_redirects=True)
            except httpx.InvalidURL as exc:
                raise ScrapeUnavailable(f"Canonical page URL is not fetchable: {page_url}") from exc
            except httpx.HTTPError as exc:
                raise ScrapeUnavailable(f"Canonical page request failed: {exc}") from exc

            if not response.is_success:
                raise ScrapeUnavailable(
                    f"Canonical page request failed: status={response.status_code}, url={page_url}"
                )
            return response.text

        if http_client is not None:
            return await _get(http_client)

        async with httpx.AsyncClient(timeout=timeout) as client:
            return await _get(client)
