"""Shared pytest fixtures for database-backed service and handler tests."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shopbot.db.base import Base
from shopbot.db.models import core  # noqa: F401  registers the tables
from shopbot.services.log_buffer import LogBuffer
from shopbot.services.storage import Storage


class _AsyncSessionWrapper:
    def __init__(self, sync_session) -> None:
        self._sync = sync_session
        self.commits = 0

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._sync.get(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    def add_all(self, objs) -> None:
        self._sync.add_all(objs)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self.commits += 1
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def close(self) -> None:
        self._sync.close()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine):
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sync_session = SessionLocal()
    try:
        yield _AsyncSessionWrapper(sync_session)
    finally:
        sync_session.close()


@pytest.fixture
def log_buffer() -> LogBuffer:
    return LogBuffer(max_entries=500)


@pytest.fixture
def storage(session, log_buffer) -> Storage:
    return Storage(session, log_buffer=log_buffer)

