"""Failure taxonomy for the link-to-playlist pipeline.

Resolution errors make the pipeline fall silent. Scrape and sync errors are
reported to the chat as a re-authentication advisory next to the canonical
link. None of them are allowed to escape the webhook handler.
"""


class PipelineError(RuntimeError):
    """Base class for every recoverable pipeline failure."""


class ResolutionError(PipelineError):
    """Raised when the cross-service resolver cannot produce a canonical resource."""


class ResolutionUnavailable(ResolutionError):
    """Raised when the resolver could not be reached or answered with an error status."""


class ResolutionMalformed(ResolutionError):
    """Raised when the resolver answered with a body that is not a canonical resource."""


class ScrapeError(PipelineError):
    """Raised when the Spotify identifier cannot be recovered from the canonical page."""


class ScrapeUnavailable(ScrapeError):
    """Raised when the canonical page could not be fetched."""


class IdentifierNotFound(ScrapeError):
    """Raised when no anchor on the page carries the Spotify marker."""


class IdentifierMalformed(ScrapeError):
    """Raised when the matching anchor has no usable final path segment."""


class SyncError(PipelineError):
    """Raised when the track could not be added to the target playlist."""


class NotAuthenticated(SyncError):
    """Raised when no Spotify session has been stored yet."""


class SessionExpired(SyncError):
    """Raised when the stored Spotify session is past its expiry."""


class TrackLookupFailed(SyncError):
    """Raised when Spotify could not return the track for the scraped identifier."""


class PlaylistAppendFailed(SyncError):
    """Raised when Spotify rejected appending the track to the playlist."""
