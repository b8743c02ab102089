"""Middleware that injects an AsyncSession per update."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from shopbot.db.session import Database


class DbSessionMiddleware(BaseMiddleware):
    """Open one session per update; commit what handlers left pending, roll back on error."""

    def __init__(self, database: Database) -> None:
        super().__init__()
        self.database = database

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self.database.session() as session:
            data["session"] = session
            try:
                result = await handler(event, data)
            except Exception:
                await session.rollback()
                raise
            finally:
                data.pop("session", None)
            await session.commit()
            return result


__all__ = ["DbSessionMiddleware"]
