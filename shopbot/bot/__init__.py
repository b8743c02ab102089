"""Dispatcher assembly: middleware chain, routers and the Telegram command menu."""

from __future__ import annotations

from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.types import BotCommand

from shopbot.bot.middlewares import build_middleware_chain, install_middlewares
from shopbot.bot.routers import setup_routers
from shopbot.config import BotSettings
from shopbot.db.session import Database
from shopbot.logging import logger
from shopbot.services.rate_limit import SlidingWindowRateLimiter

BOT_COMMANDS = (
    BotCommand(command="start", description="Start the bot and get a welcome message"),
    BotCommand(command="plans", description="View available VPN subscription plans"),
    BotCommand(command="help", description="Show help information"),
)


def build_bot(settings: BotSettings) -> Bot:
    session = (
        AiohttpSession(proxy=settings.telegram_proxy) if settings.telegram_proxy else None
    )
    return Bot(token=settings.telegram_token.get_secret_value(), session=session)


def build_dispatcher(
    database: Database,
    settings: BotSettings,
    *,
    limiter: SlidingWindowRateLimiter | None = None,
) -> Dispatcher:
    dispatcher = Dispatcher(settings=settings)
    install_middlewares(dispatcher, build_middleware_chain(database, settings, limiter=limiter))
    dispatcher.include_router(setup_routers())
    return dispatcher


async def publish_commands(bot: Bot) -> None:
    try:
        await bot.set_my_commands(list(BOT_COMMANDS))
    except Exception as exc:
        logger.error("set_bot_commands_failed", error=str(exc))


__all__ = ["BOT_COMMANDS", "build_bot", "build_dispatcher", "publish_commands"]
