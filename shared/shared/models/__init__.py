"""SQLAlchemy models."""

from shared.models.base import Base
from shared.models.video import VideoRecord, VideoStatus

__all__ = [
    "Base",
    "VideoRecord",
    "VideoStatus",
]
