"""Pydantic models for the cross-service resolver response."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SPOTIFY_SERVICE_KEY = "spotify"


class CanonicalResource(BaseModel):
    """Music item normalized across streaming services.

    ``url`` is the canonical page shared back to the chat. ``links`` maps
    each service name to whether the item is available there.
    """

    model_config = ConfigDict(extra="ignore")

    type: Literal["track", "album", "playlist"]
    url: str = Field(min_length=1)
    links: dict[str, bool]
    name: Optional[str] = None
    image: Optional[str] = None

    @property
    def spotify_available(self) -> bool:
        return self.links.get(SPOTIFY_SERVICE_KEY) is True
