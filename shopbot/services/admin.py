"""Admin identity resolution and the one-time admin bootstrap."""

from __future__ import annotations

import asyncio

from shopbot.config import BotSettings
from shopbot.db.models.core import BotConfig
from shopbot.logging import logger
from shopbot.services.storage import Storage
from shopbot.utils.datetime import utc_now_naive

# Shared by every AdminService so that bootstrap runs once per process.
_bootstrap_lock = asyncio.Lock()


class AdminService:
    def __init__(self, storage: Storage, settings: BotSettings | None = None) -> None:
        self.storage = storage
        self.settings = settings

    async def ensure_config(self) -> BotConfig:
        """Create or complete the config row from settings. Idempotent."""

        async with _bootstrap_lock:
            configured_admin = self.settings.admin_id if self.settings else None
            config = await self.storage.get_config()
            if config is None:
                config = await self.storage.save_config(
                    admin_id=configured_admin,
                    log_level=self.settings.logging.level if self.settings else "info",
                    health_check_interval=(
                        self.settings.health.interval_minutes if self.settings else 5
                    ),
                    detailed_logging=self.settings.logging.detailed if self.settings else True,
                )
                logger.info("bot_config_created", admin_id=config.admin_id)
            elif not config.admin_id and configured_admin:
                config = await self.storage.save_config(admin_id=configured_admin)
                logger.info("bot_config_admin_set_from_settings", admin_id=configured_admin)

            config = await self.storage.save_config(last_started=utc_now_naive())
            await self.storage.commit()
            return config

    async def get_admin_id(self) -> str | None:
        config = await self.storage.get_config()
        if config is None or not config.admin_id:
            return None
        return config.admin_id

    async def is_admin(self, telegram_id: str) -> bool:
        admin_id = await self.get_admin_id()
        if admin_id is not None:
            return admin_id == telegram_id
        return await self._bootstrap(telegram_id)

    async def _bootstrap(self, telegram_id: str) -> bool:
        # First sender to reach an admin check while none is configured becomes admin.
        async with _bootstrap_lock:
            admin_id = await self.get_admin_id()
            if admin_id is not None:
                return admin_id == telegram_id
            await self.storage.save_config(admin_id=telegram_id)
            await self.storage.commit()
            logger.info("first_user_set_as_admin", user_id=telegram_id)
            return True


__all__ = ["AdminService"]
