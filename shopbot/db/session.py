"""Engine and session lifecycle for the shop database."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from shopbot.config import BotSettings, DatabaseSettings, get_settings
from shopbot.db.base import Base
from shopbot.logging import logger


def engine_options(db_cfg: DatabaseSettings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine``.

    SQLite drivers use a single-connection pool that rejects sizing options.
    """

    options: dict[str, Any] = {"echo": db_cfg.echo}
    if make_url(db_cfg.dsn).get_backend_name() != "sqlite":
        options.update(
            pool_size=db_cfg.pool_size,
            max_overflow=db_cfg.max_overflow,
            pool_recycle=db_cfg.pool_recycle,
            pool_pre_ping=db_cfg.pool_pre_ping,
        )
    return options


class Database:
    """Creates the engine on first use; one ``Database`` per process."""

    def __init__(self, settings: BotSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    def _connect(self) -> None:
        db_cfg = self.settings.database
        self._engine = create_async_engine(db_cfg.dsn, **engine_options(db_cfg))
        self._sessions = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "db_engine_initialized",
            backend=self._engine.url.get_backend_name(),
            database=self._engine.url.database,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._connect()
        assert self._engine is not None
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._sessions is None:
            self._connect()
        assert self._sessions is not None
        return self._sessions

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; anything left uncommitted is rolled back on error."""

        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                logger.debug("db_session_rolled_back")
                raise

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("db_schema_ready", tables=sorted(Base.metadata.tables))

    async def dispose(self) -> None:
        engine, self._engine, self._sessions = self._engine, None, None
        if engine is not None:
            await engine.dispose()
            logger.info("db_engine_disposed")


__all__ = ["Database", "engine_options"]
