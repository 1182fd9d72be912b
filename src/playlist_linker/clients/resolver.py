"""Async client for the cross-service link resolver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import ValidationError

from playlist_linker.config.settings import DEFAULT_RESOLVER_URL
from playlist_linker.exceptions import ResolutionMalformed, ResolutionUnavailable
from playlist_linker.schemas import CanonicalResource


@dataclass(slots=True)
class ResolverClient:
    """Resolve a streaming link to its canonical cross-service resource."""

    base_url: str = DEFAULT_RESOLVER_URL

    async def resolve(
        self,
        link: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> CanonicalResource:
        """POST the link to the resolver and return the parsed resource.

        A single request is made. Transport failures and error statuses raise
        :class:`ResolutionUnavailable`; bodies that are not a canonical
        resource raise :class:`ResolutionMalformed`.
        """

        if not link.strip():
            raise ValueError("Link to resolve must be non-empty")

        async def _post(client: httpx.AsyncClient) -> CanonicalResource:
            try:
                response = await client.post(self.base_url, json={"url": link})
            except httpx.HTTPError as exc:
                raise ResolutionUnavailable(f"Resolver request failed: {exc}") from exc

            if not response.is_success:
                raise ResolutionUnavailable(
                    "Resolver request failed: "
                    f"status={response.status_code}, body={response.text[:200]}"
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise ResolutionMalformed("Resolver response was not valid JSON") from exc

            try:
                return CanonicalResource.model_validate(payload)
            except ValidationError as exc:
                raise ResolutionMalformed(
                    f"Resolver response had unexpected structure: {exc.error_count()} error(s)"
                ) from exc

        if http_client is not None:
            return await _post(http_client)

        async with httpx.AsyncClient(timeout=timeout) as client:
            return await _post(client)
