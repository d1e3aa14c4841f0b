"""Async SQLAlchemy engine, session factory and connection handle."""

from __future__ import annotations

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shared.config import get_settings

logger = structlog.get_logger()


def create_engine(database_url: str | None = None):
    """Create an async SQLAlchemy engine."""
    url = database_url or get_settings().database_url
    kwargs = {"echo": False, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        kwargs.update(pool_size=20, max_overflow=10)
    return create_async_engine(url, **kwargs)


def create_session_factory(engine=None) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(engine, expire_on_commit=False)


class Database:
    """One long-lived connection handle shared by every request.

    The engine is created lazily on first use and reused until
    ``disconnect()``. ``is_ready()`` reports whether the last ``connect()``
    reached the server.
    """

    def __init__(self, database_url: str | None = None, engine: AsyncEngine | None = None):
        self._url = database_url
        self._engine = engine
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._ready = False

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_engine(self._url)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = create_session_factory(self.engine)
        return self._session_factory

    async def connect(self) -> None:
        """Open the engine and verify the server answers."""
        if self._ready:
            logger.debug("database_connection_reused")
            return
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            self._ready = False
            raise
        self._ready = True
        logger.info("database_connected", dialect=self.engine.dialect.name)

    async def disconnect(self) -> None:
        """Dispose the engine and its pool."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        self._ready = False
        logger.info("database_disconnected")

    def is_ready(self) -> bool:
        return self._ready
