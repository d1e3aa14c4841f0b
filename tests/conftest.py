"""Shared test fixtures for the video generator test suite.

Provides mock database sessions, a mock Database handle, a SQLite-backed
Database, and record factories so module tests can run without Postgres or
object storage.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.database import Database
from shared.models.base import Base
from shared.models.video import VideoRecord, VideoStatus


# ---------------------------------------------------------------------------
# Database mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_db_session():
    """Mock async SQLAlchemy session.

    Supports the patterns used by the store:
        session.execute(stmt) -> result
        session.add(obj)
        session.commit() / session.rollback()
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.dirty = set()
    # Default: execute returns a result with no rows
    default_result = MagicMock()
    default_result.scalar_one_or_none.return_value = None
    default_result.scalars.return_value.all.return_value = []
    session.execute = AsyncMock(return_value=default_result)
    return session


@pytest.fixture
def mock_session_factory(mock_db_session):
    """Mock async session factory compatible with ``async with factory() as session:``."""

    @asynccontextmanager
    async def _session_ctx():
        yield mock_db_session

    factory = MagicMock(side_effect=lambda: _session_ctx())
    return factory


@pytest.fixture
async def sqlite_database(tmp_path):
    """Real Database handle on a throwaway SQLite file with the schema created."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'videos.db'}")
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture
def mock_database(mock_session_factory):
    """Stand-in for shared.database.Database exposing the mock session factory."""
    database = MagicMock()
    database.session_factory = mock_session_factory
    database.is_ready.return_value = True
    database.connect = AsyncMock()
    database.disconnect = AsyncMock()
    return database


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_video_record():
    """Factory for creating VideoRecord instances."""

    def _make(
        storage_key: str | None = None,
        prompt: str = "A red fox running through snow",
        status: str = VideoStatus.ACTIVE.value,
        expiration_time: str | None = None,
        user_id: str | None = None,
        updated_at: datetime | None = None,
    ) -> VideoRecord:
        now = datetime.now(timezone.utc)
        return VideoRecord(
            id=uuid.uuid4(),
            prompt=prompt,
            storage_key=storage_key or f"videos/{uuid.uuid4().int % 10**13}.mp4",
            status=status,
            format="video/mp4",
            expiration_time=expiration_time,
            user_id=user_id,
            created_at=now,
            updated_at=updated_at or now,
        )

    return _make


def make_scalars_result(records):
    """Build an execute() result whose ``scalars().all()`` returns ``records``."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(records)
    result.scalar_one_or_none.return_value = records[0] if records else None
    return result


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_execute_side_effect(*results):
    """Create an execute side_effect that returns different results per call.

    Usage::

        session.execute = AsyncMock(
            side_effect=make_execute_side_effect(result1, result2)
        )

    Each result should be a MagicMock with the appropriate return values
    (e.g. scalar_one_or_none, scalars().all()).
    """
    call_idx = 0

    async def _side_effect(stmt, *args, **kwargs):
        nonlocal call_idx
        if call_idx < len(results):
            r = results[call_idx]
            call_idx += 1
            return r
        # Fallback: return empty result
        fallback = MagicMock()
        fallback.scalar_one_or_none.return_value = None
        fallback.scalars.return_value.all.return_value = []
        return fallback

    return _side_effect
