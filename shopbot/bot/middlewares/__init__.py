"""Update-level middleware chain.

Stages run in list order, each one deciding whether to call the next:

1. ``ErrorGuardMiddleware``: contains failures from everything below it
2. ``ThrottleMiddleware``: per-sender request cap
3. ``RequestLoggingMiddleware``: update type, command and latency
4. ``DbSessionMiddleware``: one database session per update
5. ``UserActivityMiddleware``: ChatUser creation and last-activity tracking
"""

from __future__ import annotations

from typing import Sequence

from aiogram import BaseMiddleware, Dispatcher

from shopbot.bot.middlewares.db_session import DbSessionMiddleware
from shopbot.bot.middlewares.error_guard import ErrorGuardMiddleware
from shopbot.bot.middlewares.request_logging import RequestLoggingMiddleware
from shopbot.bot.middlewares.throttle import ThrottleMiddleware
from shopbot.bot.middlewares.user_activity import UserActivityMiddleware
from shopbot.config import BotSettings
from shopbot.db.session import Database
from shopbot.i18n import I18nService
from shopbot.services.rate_limit import SlidingWindowRateLimiter


def build_middleware_chain(
    database: Database,
    settings: BotSettings,
    *,
    limiter: SlidingWindowRateLimiter | None = None,
    i18n: I18nService | None = None,
) -> list[BaseMiddleware]:
    i18n = i18n or I18nService(default_locale=settings.default_language)
    return [
        ErrorGuardMiddleware(i18n),
        ThrottleMiddleware(settings, limiter=limiter, i18n=i18n),
        RequestLoggingMiddleware(),
        DbSessionMiddleware(database),
        UserActivityMiddleware(),
    ]


def install_middlewares(dispatcher: Dispatcher, chain: Sequence[BaseMiddleware]) -> None:
    # Outer update middlewares wrap every event type; registration order is call order.
    for middleware in chain:
        dispatcher.update.outer_middleware(middleware)


__all__ = [
    "DbSessionMiddleware",
    "ErrorGuardMiddleware",
    "RequestLoggingMiddleware",
    "ThrottleMiddleware",
    "UserActivityMiddleware",
    "build_middleware_chain",
    "install_middlewares",
]
