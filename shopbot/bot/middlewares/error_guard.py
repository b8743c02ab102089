"""Outermost stage: contain handler failures and apologise to the sender."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from shopbot.bot.utils.events import describe_update, reply_to_sender, sender_id
from shopbot.i18n import I18nService
from shopbot.logging import logger


class ErrorGuardMiddleware(BaseMiddleware):
    """Never let an exception escape to the polling loop."""

    def __init__(self, i18n: I18nService | None = None) -> None:
        self.i18n = i18n or I18nService()

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        try:
            return await handler(event, data)
        except Exception as exc:
            user_id = sender_id(data)
            update_type, command = describe_update(event)
            logger.error(
                "unhandled_update_error",
                user_id=user_id,
                update_type=update_type,
                command=command,
                error=str(exc),
                error_type=exc.__class__.__name__,
                exc_info=True,
            )
            try:
                await reply_to_sender(data, self.i18n.gettext("error.generic"))
            except Exception as reply_exc:
                logger.error(
                    "error_reply_failed",
                    user_id=user_id,
                    error=str(reply_exc),
                )
            return None


__all__ = ["ErrorGuardMiddleware"]
