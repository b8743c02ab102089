"""Telegram sending helpers with retry support."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from aiogram import Bot
from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramNotFound,
    TelegramUnauthorizedError,
)
from aiogram.types import CallbackQuery, Message

from shopbot.logging import logger
from shopbot.services.exceptions import TransportFailure
from shopbot.utils.retry import RetryPolicy, retry_async

TELEGRAM_SEND_MAX_ATTEMPTS = 3
TELEGRAM_SEND_BASE_DELAY = 0.3

# Retrying these cannot succeed.
_PERMANENT_ERRORS = (
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramNotFound,
    TelegramUnauthorizedError,
)


def _send_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=TELEGRAM_SEND_MAX_ATTEMPTS,
        base_delay=TELEGRAM_SEND_BASE_DELAY,
        retry_on=(TelegramAPIError,),
        give_up_on=_PERMANENT_ERRORS,
    )


async def _send_with_retry(send: Callable[[], Awaitable[Any]], operation_name: str) -> Any:
    try:
        return await retry_async(send, _send_policy(), operation_name=operation_name)
    except TelegramAPIError as exc:
        logger.error("telegram_send_failed", operation=operation_name, error=str(exc))
        raise TransportFailure(f"{operation_name} failed: {exc}") from exc


async def answer_with_retry(message: Message, text: str, **kwargs: Any) -> Any:
    """Send a reply with retry/backoff."""

    async def _send():
        return await message.answer(text, **kwargs)

    return await _send_with_retry(_send, "telegram_answer")


async def answer_callback_with_retry(callback: CallbackQuery, text: str | None = None) -> Any:
    """Acknowledge an inline button press so the client stops spinning."""

    async def _send():
        return await callback.answer(text)

    return await _send_with_retry(_send, "telegram_answer_callback")


async def bot_send_with_retry(bot: Bot, *, chat_id: int | str, text: str, **kwargs: Any) -> Any:
    """Send a message via Bot with retry/backoff."""

    async def _send():
        return await bot.send_message(chat_id=chat_id, text=text, **kwargs)

    return await _send_with_retry(_send, "telegram_send_message")


async def bot_send_photo_with_retry(
    bot: Bot, *, chat_id: int | str, photo: str, caption: str | None = None, **kwargs: Any
) -> Any:
    async def _send():
        return await bot.send_photo(chat_id=chat_id, photo=photo, caption=caption, **kwargs)

    return await _send_with_retry(_send, "telegram_send_photo")


__all__ = [
    "answer_callback_with_retry",
    "answer_with_retry",
    "bot_send_photo_with_retry",
    "bot_send_with_retry",
]
