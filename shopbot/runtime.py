"""Start and stop the polling bot together with its health supervisor."""

from __future__ import annotations

import asyncio
import contextlib

from aiogram import Bot, Dispatcher

from shopbot.bot import build_bot, build_dispatcher, publish_commands
from shopbot.config import BotSettings
from shopbot.db.session import Database
from shopbot.logging import logger, set_log_level
from shopbot.services.admin import AdminService
from shopbot.services.health import HealthSupervisor
from shopbot.services.rate_limit import SlidingWindowRateLimiter
from shopbot.services.seeds import ensure_default_plans
from shopbot.services.storage import Storage

STOP_TIMEOUT_SECONDS = 10.0


class BotRuntime:
    """Owns the Bot, its Dispatcher and the polling task."""

    def __init__(
        self,
        settings: BotSettings,
        database: Database,
        health: HealthSupervisor,
        *,
        limiter: SlidingWindowRateLimiter | None = None,
    ) -> None:
        self.settings = settings
        self.database = database
        self.health = health
        self.limiter = limiter or SlidingWindowRateLimiter(
            max_requests=settings.request_limit.max_requests,
            window_seconds=settings.request_limit.interval_seconds,
        )
        self.bot: Bot | None = None
        self.dispatcher: Dispatcher | None = None
        self._polling: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._polling is not None and not self._polling.done()

    async def start(self) -> bool:
        """Start polling; returns False when already running."""

        async with self._lock:
            if self.is_running:
                return False

            async with self.database.session() as session:
                config = await AdminService(Storage(session), self.settings).ensure_config()
                await ensure_default_plans(session)
            set_log_level(config.log_level, detailed=config.detailed_logging)

            bot = build_bot(self.settings)
            dispatcher = build_dispatcher(self.database, self.settings, limiter=self.limiter)
            await publish_commands(bot)

            self.health.attach(bot)
            interval = await self.health.start(config.health_check_interval)
            logger.info("health_checks_armed", interval_minutes=interval)

            self.bot, self.dispatcher = bot, dispatcher
            self._polling = asyncio.create_task(
                dispatcher.start_polling(bot, handle_signals=False, close_bot_session=False),
                name="bot-polling",
            )
            logger.info("bot_started", environment=self.settings.environment)
            return True

    async def stop(self) -> None:
        async with self._lock:
            # The timer must not fire against a closed transport.
            await self.health.stop()
            self.health.attach(None)

            polling, self._polling = self._polling, None
            if self.dispatcher is not None and polling is not None and not polling.done():
                with contextlib.suppress(RuntimeError):
                    await self.dispatcher.stop_polling()
                try:
                    await asyncio.wait_for(polling, timeout=STOP_TIMEOUT_SECONDS)
                except asyncio.TimeoutError:
                    logger.warning("bot_polling_stop_timeout")
                except asyncio.CancelledError:
                    pass

            if self.bot is not None:
                await self.bot.session.close()
                logger.info("bot_stopped")
            self.bot = None
            self.dispatcher = None

    async def wait(self) -> None:
        """Block until polling ends."""

        if self._polling is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._polling


__all__ = ["BotRuntime"]
