"""Service layer modules for the Playlist Linker service."""

from .link_extractor import extract_music_link
from .pipeline import (
    AUTH_START_PATH,
    REAUTH_ADVISORY,
    LinkPipeline,
    PipelineOutcome,
    build_reauth_advisory,
    build_replies,
    public_auth_url,
)
from .playlist_sync import PlaylistMutationResult, PlaylistSyncEngine
from .scraper import IdentifierScraper, extract_identifier, identifier_from_href

__all__ = [
    "AUTH_START_PATH",
    "REAUTH_ADVISORY",
    "IdentifierScraper",
    "LinkPipeline",
    "PipelineOutcome",
    "PlaylistMutationResult",
    "PlaylistSyncEngine",
    "build_reauth_advisory",
    "build_replies",
    "extract_identifier",
    "extract_music_link",
    "identifier_from_href",
    "public_auth_url",
]
