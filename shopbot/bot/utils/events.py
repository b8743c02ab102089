"""Read sender, chat and command details from an update and its context data."""

from __future__ import annotations

from typing import Any

from aiogram import Bot
from aiogram.types import TelegramObject

from shopbot.logging import logger


def sender_id(data: dict[str, Any]) -> str | None:
    """External id of the user behind the update, as stored in the database."""

    user = data.get("event_from_user")
    if user is None:
        return None
    return str(user.id)


def describe_update(event: TelegramObject) -> tuple[str, str | None]:
    """Return ``(update_type, command)`` for logging."""

    update_type = getattr(event, "event_type", None) or type(event).__name__.lower()
    message = getattr(event, "message", None)
    text = getattr(message, "text", None)
    command = None
    if isinstance(text, str) and text.startswith("/"):
        command = text.split(maxsplit=1)[0]
    callback = getattr(event, "callback_query", None)
    if command is None and callback is not None:
        command = getattr(callback, "data", None)
    return update_type, command


async def reply_to_sender(data: dict[str, Any], text: str) -> bool:
    """Send ``text`` to the chat the update came from; returns False if impossible."""

    bot: Bot | None = data.get("bot")
    chat = data.get("event_chat")
    if bot is None or chat is None:
        logger.warning("reply_target_unavailable", user_id=sender_id(data))
        return False
    await bot.send_message(chat_id=chat.id, text=text)
    return True


__all__ = ["describe_update", "reply_to_sender", "sender_id"]
