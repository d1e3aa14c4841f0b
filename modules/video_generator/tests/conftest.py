"""Expose the shared database fixtures to the module tests."""

from tests.conftest import (  # noqa: F401
    make_video_record,
    mock_database,
    mock_db_session,
    mock_session_factory,
    sqlite_database,
)
