"""Configuration for the Playlist Linker service."""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
