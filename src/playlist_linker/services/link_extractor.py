"""Detection of music-streaming links in chat messages."""

import re
from typing import Optional

MUSIC_SERVICE_HOSTS: tuple[str, ...] = (
    "apple",
    "spotify",
    "youtube",
    "youtu",
    "bandcamp",
    "tidal",
    "pandora",
    "napster",
    "yandex",
    "amazon",
    "deezer",
    "jiosaavn",
    "audius",
    "gaana",
    "soundcloud",
    "page",
)

MUSIC_SERVICE_TLDS: tuple[str, ...] = ("com", "co", "link", "be")

# Host tokens are matched case-sensitively; "Spotify.com" is not a link.
_MUSIC_LINK_PATTERN = re.compile(
    r"(?:https?://)?"
    r"(?:[a-z0-9]*[-.])*"
    rf"(?:{'|'.join(MUSIC_SERVICE_HOSTS)})"
    rf"\.(?:{'|'.join(MUSIC_SERVICE_TLDS)})"
    r"(?:/[^\s\"']*)+"
)


def extract_music_link(content: Optional[str]) -> Optional[str]:
    """Return the first music-service link found in ``content``, if any."""

    if not content:
        return None

    match = _MUSIC_LINK_PATTERN.search(content)
    if match is None:
        return None
    return match.group(0)
