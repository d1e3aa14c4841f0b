"""Pydantic schemas for the video service."""

from shared.schemas.common import ApiResponse, HealthResponse
from shared.schemas.videos import GenerateVideoRequest, VideoListItem, VideoResult

__all__ = [
    "ApiResponse",
    "GenerateVideoRequest",
    "HealthResponse",
    "VideoListItem",
    "VideoResult",
]
