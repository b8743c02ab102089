"""Log every update with its processing latency."""

from __future__ import annotations

from time import perf_counter
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from shopbot.bot.utils.events import describe_update, sender_id
from shopbot.logging import logger


class RequestLoggingMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        update_type, command = describe_update(event)
        user = data.get("event_from_user")
        context = {
            "user_id": sender_id(data),
            "username": getattr(user, "username", None),
            "update_type": update_type,
            "command": command,
        }
        started = perf_counter()
        logger.debug("update_received", **context)
        try:
            result = await handler(event, data)
        except Exception as exc:
            logger.error(
                "update_failed",
                processing_ms=round((perf_counter() - started) * 1000, 1),
                error=str(exc),
                **context,
            )
            raise
        logger.debug(
            "update_processed",
            processing_ms=round((perf_counter() - started) * 1000, 1),
            **context,
        )
        return result


__all__ = ["RequestLoggingMiddleware"]
