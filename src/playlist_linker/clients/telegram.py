"""Async client for interacting with the Telegram Bot API."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Optional, cast

import httpx


class TelegramAPIError(RuntimeError):
    """Raised when a Telegram Bot API request fails."""


@dataclass(slots=True)
class TelegramClient:
    """Minimal Telegram client used for replying in the chat a link was shared in."""

    bot_token: str
    channel_id: Optional[str] = None
    base_url: str = "https://api.telegram.org"

    async def send_message(
        self,
        text: str,
        *,
        chat_id: Optional[str] = None,
        reply_to_message_id: Optional[int] = None,
        disable_web_page_preview: bool = False,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 10.0,
    ) -> dict[str, Any]:
        """Send a message and return the Telegram response.

        Parameters
        ----------
        text:
            Message body to post.
        chat_id:
            Target chat. Falls back to the configured ``channel_id``.
        reply_to_message_id:
            When set, the message is posted as a reply to this message.
        disable_web_page_preview:
            Whether to suppress link previews in Telegram.
        http_client:
            Optional existing :class:`httpx.AsyncClient` to reuse. When ``None``, a temporary
            client is created.
        timeout:
            Timeout, in seconds, for the Telegram HTTP request.
        """

        if not text.strip():
            raise ValueError("Telegram messages must contain non-empty text")

        target_chat = chat_id or self.channel_id
        if not target_chat:
            raise ValueError("A chat_id is required to send a Telegram message")

        url = f"{self.base_url}/bot{self.bot_token}/sendMessage"
        payload: dict[str, Any] = {
            "chat_id": target_chat,
            "text": text,
            "disable_web_page_preview": disable_web_page_preview,
        }
        if reply_to_message_id is not None:
            payload["reply_to_message_id"] = reply_to_message_id

        async def _post(client: httpx.AsyncClient) -> dict[str, Any]:
            try:
                response = await client.post(url, json=payload)
            except httpx.HTTPError as exc:
                raise TelegramAPIError(f"Telegram sendMessage request could not be sent: {exc}") from exc

            if response.status_code != HTTPStatus.OK:
                raise TelegramAPIError(
                    "Telegram sendMessage request failed: "
                    f"status={response.status_code}, body={response.text}"
                )

            try:
                payload_raw = response.json()
            except ValueError as exc:  # pragma: no cover - defensive guard
                raise TelegramAPIError("Telegram sendMessage response was not valid JSON") from exc

            if not isinstance(payload_raw, dict):
                raise TelegramAPIError(
                    "Telegram sendMessage response had unexpected structure"
                )

            payload_obj = cast(dict[str, Any], payload_raw)

            if not bool(payload_obj.get("ok", False)):
                description_raw = payload_obj.get("description", "Unknown error")
                description = str(description_raw)
                raise TelegramAPIError(f"Telegram sendMessage failed: {description}")

            return payload_obj

        if http_client is not None:
            return await _post(http_client)

        async with httpx.AsyncClient(timeout=timeout) as client:
            return await _post(client)


def build_telegram_client(bot_token: Optional[str], channel_id: Optional[str] = None) -> Optional[TelegramClient]:
    """Return a TelegramClient when a bot token is configured."""

    if not bot_token:
        return None
    return TelegramClient(bot_token=bot_token, channel_id=channel_id)
