"""Per-sender throttle to stop rapid-fire requests."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from shopbot.bot.utils.events import reply_to_sender, sender_id
from shopbot.config import BotSettings, get_settings
from shopbot.i18n import I18nService
from shopbot.logging import logger
from shopbot.services.exceptions import RateLimitExceeded
from shopbot.services.rate_limit import SlidingWindowRateLimiter


class ThrottleMiddleware(BaseMiddleware):
    def __init__(
        self,
        settings: BotSettings | None = None,
        limiter: SlidingWindowRateLimiter | None = None,
        i18n: I18nService | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.limiter = limiter or SlidingWindowRateLimiter(
            max_requests=self.settings.request_limit.max_requests,
            window_seconds=self.settings.request_limit.interval_seconds,
        )
        self.i18n = i18n or I18nService()

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        dropped = self.limiter.maybe_prune()
        if dropped:
            logger.debug("rate_limit_windows_pruned", dropped=dropped)

        user_id = sender_id(data)
        if user_id is None:
            return await handler(event, data)

        try:
            await self.limiter.hit(user_id)
        except RateLimitExceeded as exc:
            logger.warning("rate_limit_exceeded", user_id=user_id, detail=str(exc))
            await reply_to_sender(data, self.i18n.gettext("limit.exceeded"))
            return None

        return await handler(event, data)


__all__ = ["ThrottleMiddleware"]
