"""Record the sender as a ChatUser and keep last activity current."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from sqlalchemy.ext.asyncio import AsyncSession

from shopbot.logging import logger
from shopbot.services.exceptions import PersistenceFailure
from shopbot.services.storage import Storage


class UserActivityMiddleware(BaseMiddleware):
    """Failures here are logged and never block the command itself."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        from_user = data.get("event_from_user")
        session: AsyncSession | None = data.get("session")
        if from_user is not None and session is not None:
            try:
                data["chat_user"] = await self._record(Storage(session), from_user)
            except Exception as exc:
                logger.warning(
                    "user_activity_update_failed",
                    user_id=str(from_user.id),
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                )
                if isinstance(exc, PersistenceFailure):
                    await session.rollback()
        return await handler(event, data)

    @staticmethod
    async def _record(storage: Storage, from_user: Any):
        telegram_id = str(from_user.id)
        user = await storage.get_user(telegram_id)
        if user is not None:
            await storage.touch_user_activity(telegram_id)
            return user

        user = await storage.create_user(
            telegram_id,
            username=getattr(from_user, "username", None),
            first_name=getattr(from_user, "first_name", None),
            last_name=getattr(from_user, "last_name", None),
        )
        await storage.commit()
        logger.info("new_user_registered", user_id=telegram_id, username=user.username)
        return user


__all__ = ["UserActivityMiddleware"]
