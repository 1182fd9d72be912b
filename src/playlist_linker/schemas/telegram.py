"""Pydantic models representing Telegram webhook payloads."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramChat(BaseModel):
    """Basic information about a Telegram chat or channel."""

    id: int
    title: Optional[str] = None
    username: Optional[str] = None
    type: Optional[str] = None


class TelegramUser(BaseModel):
    """Sender of a Telegram message."""

    id: int
    is_bot: bool = False
    username: Optional[str] = None


class TelegramMessage(BaseModel):
    """Subset of Telegram message fields needed for the project."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    text: Optional[str] = None
    caption: Optional[str] = None
    date: Optional[int] = None
    chat: Optional[TelegramChat] = None
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")

    @property
    def sent_by_bot(self) -> bool:
        return bool(self.from_user and self.from_user.is_bot)


class TelegramUpdate(BaseModel):
    """Top-level Telegram update payload."""

    update_id: int
    message: Optional[TelegramMessage] = None
    channel_post: Optional[TelegramMessage] = None
