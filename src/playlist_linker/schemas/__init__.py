"""Shared Pydantic models used across the application."""

from .resolver import CanonicalResource
from .telegram import TelegramChat, TelegramMessage, TelegramUpdate, TelegramUser

__all__ = [
    "CanonicalResource",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUpdate",
    "TelegramUser",
]
