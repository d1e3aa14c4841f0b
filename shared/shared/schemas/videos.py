"""Request/response schemas for video generation and listing."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateVideoRequest(_CamelModel):
    prompt: str
    # Accepted and recorded, not forwarded to the provider
    duration: Any = None
    quality: str | None = None
    user_id: str | None = None


class VideoResult(_CamelModel):
    """Normalized outcome of one generation run.

    Optional provider fields stay unset (and are dropped on serialization)
    when the provider did not return them.
    """

    status: str
    storage_key: str
    public_url: str
    prompt: str

    name: str | None = None
    mime_type: str | None = None
    format: str | None = None
    create_time: str | None = None
    expiration_time: str | None = None
    update_time: str | None = None
    uri: str | None = None
    download_uri: str | None = None
    source: str | None = None
    duration_seconds: str | None = None
    size_bytes: int | None = None


class VideoListItem(_CamelModel):
    key: str
    url: str
    size: int | None = None
    last_modified: datetime | None = None
