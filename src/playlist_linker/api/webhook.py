"""Telegram webhook endpoints."""

from typing import Optional, TypeVar

import httpx
from fastapi import APIRouter, Request, Response, status

from playlist_linker.clients import TelegramAPIError, TelegramClient
from playlist_linker.logger import get_logger
from playlist_linker.schemas import TelegramMessage, TelegramUpdate
from playlist_linker.services import LinkPipeline

router = APIRouter(prefix="/webhook", tags=["webhook"])
logger = get_logger(__name__)

T = TypeVar("T")


@router.post("/telegram", status_code=status.HTTP_204_NO_CONTENT)
async def handle_telegram_webhook(request: Request, payload: TelegramUpdate) -> Response:
    """Receive a Telegram update and reply with the canonical link for any music link in it."""

    message = extract_relevant_message(payload)
    logger.info(
        "Received Telegram webhook payload: update_id=%s, message_id=%s",
        payload.update_id,
        message.message_id if message else "<none>",
    )

    if message is None:
        logger.info("No Telegram message or channel post found in update; skipping processing")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    if message.sent_by_bot:
        logger.debug("Ignoring message %s sent by a bot", message.message_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    raw_content = get_message_text(message)
    if raw_content is None or not raw_content.strip():
        logger.info("Telegram message contains no textual content; skipping processing")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    pipeline = get_state_component(request, "pipeline", LinkPipeline)
    if pipeline is None:
        logger.warning("Link pipeline unavailable; webhook will skip processing")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    http_client = get_state_component(request, "http_client", httpx.AsyncClient)
    try:
        outcome = await pipeline.process(raw_content, http_client=http_client)
    except Exception:
        # A non-2xx response makes Telegram redeliver the same update.
        logger.exception("Link pipeline failed for message_id=%s", message.message_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    replies = pipeline.replies(outcome)
    if not replies:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    telegram_client = get_state_component(request, "telegram_client", TelegramClient)
    if telegram_client is None:
        logger.warning("Telegram client unavailable; %d reply(ies) not sent", len(replies))
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    await send_replies(telegram_client, message, replies, http_client=http_client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def extract_relevant_message(payload: TelegramUpdate) -> TelegramMessage | None:
    """Return the channel post or regular message contained in the update."""

    if payload.channel_post is not None:
        return payload.channel_post
    return payload.message


def get_message_text(message: TelegramMessage) -> str | None:
    """Return the textual content of a Telegram message, preferring the caption."""

    if message.caption:
        return message.caption
    return message.text or None


def get_state_component(request: Request, name: str, expected_type: type[T]) -> T | None:
    """Return a collaborator from the FastAPI application state if it has the expected type."""

    component = getattr(request.app.state, name, None)
    if component is None:
        return None
    if not isinstance(component, expected_type):
        type_name = type(component).__name__
        logger.warning("Unexpected %s type on app state: %s", name, type_name)
        return None
    return component


async def send_replies(
    telegram_client: TelegramClient,
    source_message: TelegramMessage,
    replies: list[str],
    *,
    http_client: Optional[httpx.AsyncClient] = None,
) -> int:
    """Post each reply to the source chat and return how many were delivered."""

    chat_id = str(source_message.chat.id) if source_message.chat else None
    delivered = 0
    for text in replies:
        try:
            await telegram_client.send_message(
                text,
                chat_id=chat_id,
                reply_to_message_id=source_message.message_id,
                http_client=http_client,
            )
        except (TelegramAPIError, ValueError):
            logger.exception("Failed to send Telegram reply for message %s", source_message.message_id)
            continue
        delivered += 1

    logger.info(
        "Sent %d/%d reply(ies) for message_id=%s", delivered, len(replies), source_message.message_id
    )
    return delivered
