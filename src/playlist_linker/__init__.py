"""Resolve shared music links and sync them to a Spotify playlist."""

__version__ = "0.1.0"
