"""Application entrypoint."""

from __future__ import annotations

import asyncio

import uvicorn

from shopbot.api import create_app
from shopbot.config import get_settings
from shopbot.db.session import Database
from shopbot.logging import configure_logging, logger
from shopbot.runtime import BotRuntime
from shopbot.services.health import HealthSupervisor
from shopbot.services.log_buffer import get_log_buffer


async def main() -> None:
    # A missing BOT_TELEGRAM_TOKEN fails validation here and aborts startup.
    settings = get_settings()
    get_log_buffer().resize(settings.logging.retention)
    configure_logging(settings.logging.level_value, detailed=settings.logging.detailed)

    database = Database(settings=settings)
    if settings.database.create_schema:
        await database.create_schema()

    health = HealthSupervisor(
        interval_minutes=settings.health.interval_minutes,
        probe_timeout=settings.health.probe_timeout_seconds,
    )
    runtime = BotRuntime(settings, database, health)

    logger.info("bot_starting", environment=settings.environment)
    await runtime.start()
    try:
        if settings.api.enabled:
            app = create_app(database=database, health=health, runtime=runtime)
            server = uvicorn.Server(
                uvicorn.Config(
                    app,
                    host=settings.api.host,
                    port=settings.api.port,
                    log_config=None,
                )
            )
            await server.serve()
        else:
            await runtime.wait()
    finally:
        await runtime.stop()
        await database.dispose()
        logger.info("bot_shutdown_complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
