"""Google Veo video generation provider."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

import structlog
from google import genai

from shared.errors import GenerationError

logger = structlog.get_logger()

DEFAULT_MODEL = "veo-3.0-generate-preview"

# Where a video reference may carry its direct download URI, in priority order.
# Dict-shaped references use the camelCase spelling.
DOWNLOAD_URI_FIELDS: tuple[str, ...] = (
    "uri",
    "download_uri",
    "downloadUri",
    "file_url",
    "fileUrl",
)

# Hosts that expect the API key on file downloads
_AUTH_HOST_SUFFIXES = ("googleapis.com", "googleusercontent.com")


def _field(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an SDK object, None when absent."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _first(obj: Any, *names: str) -> Any:
    for name in names:
        value = _field(obj, name)
        if value:
            return value
    return None


def extract_video_reference(operation: Any) -> Any:
    """Return the first generated video of a finished operation.

    Raises:
        GenerationError: If the operation produced no video.
    """
    response = _first(operation, "response", "result")
    videos = _first(response, "generated_videos", "generatedVideos") or []
    video = _field(videos[0], "video") if videos else None
    if not video:
        raise GenerationError("No video generated in the response")
    return video


def operation_error_message(operation: Any) -> str | None:
    """Return the provider's error message for a failed operation, else None."""
    error = _field(operation, "error")
    if not error:
        return None
    return _field(error, "message") or str(error)


def resolve_download_uri(video_ref: Any) -> str | None:
    """Return the first non-empty field of DOWNLOAD_URI_FIELDS."""
    return _first(video_ref, *DOWNLOAD_URI_FIELDS)


def parse_file_name(uri: str | None) -> str | None:
    """Take the last path segment of ``uri`` and strip a ``:suffix``.

    ``https://host/v1beta/files/abc123:download?alt=media`` -> ``abc123``
    """
    if not uri:
        return None
    try:
        path = urlparse(uri).path
    except ValueError:
        return None
    parts = [p for p in path.split("/") if p]
    if not parts:
        return None
    return parts[-1].split(":", 1)[0] or None


def resolve_file_name(video_ref: Any) -> str | None:
    """Provider file name for metadata lookup: the ``name`` field, else parsed from the URI."""
    return _field(video_ref, "name") or parse_file_name(_field(video_ref, "uri"))


def build_auth_headers(uri: str, api_key: str) -> dict[str, str]:
    """Attach the API key only when ``uri`` points at a provider host."""
    host = urlparse(uri).hostname or ""
    if api_key and any(host == s or host.endswith("." + s) for s in _AUTH_HOST_SUFFIXES):
        return {"x-goog-api-key": api_key}
    return {}


def _as_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    # SDK enums (FileState, FileSource) carry their wire name in .value
    return str(getattr(value, "value", value))


def file_metadata_fields(file: Any) -> dict[str, str]:
    """Flatten provider file metadata into VideoResult fields.

    Fields the provider did not return are left out entirely.
    """
    if file is None:
        return {}

    fields = {
        "status": _as_text(_field(file, "state")),
        "name": _as_text(_field(file, "name")),
        "create_time": _as_text(_first(file, "create_time", "createTime")),
        "expiration_time": _as_text(_first(file, "expiration_time", "expirationTime")),
        "update_time": _as_text(_first(file, "update_time", "updateTime")),
        "uri": _as_text(_field(file, "uri")),
        "download_uri": _as_text(_first(file, "download_uri", "downloadUri")),
        "source": _as_text(_field(file, "source")),
    }

    mime_type = _as_text(_first(file, "mime_type", "mimeType"))
    if mime_type:
        fields["mime_type"] = mime_type
        fields["format"] = mime_type

    video_metadata = _first(file, "video_metadata", "videoMetadata")
    duration = _first(video_metadata, "video_duration", "videoDuration")
    if duration is not None:
        fields["duration_seconds"] = _as_text(duration)

    return {k: v for k, v in fields.items() if v}


class VeoProvider:
    """Async wrapper around the synchronous google-genai client."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, client: Any = None):
        if client is None and not api_key:
            raise ValueError("Google API key is required for VeoProvider")
        self.api_key = api_key
        self.model = model
        self.client = client or genai.Client(api_key=api_key)

    async def submit(self, prompt: str) -> Any:
        """Start a generation job and return its operation handle."""
        operation = await asyncio.to_thread(
            self.client.models.generate_videos,
            model=self.model,
            prompt=prompt,
        )
        logger.info("veo_job_submitted", model=self.model, operation=_field(operation, "name"))
        return operation

    async def refresh(self, operation: Any) -> Any:
        return await asyncio.to_thread(self.client.operations.get, operation)

    async def save_to(self, video_ref: Any, path: str) -> None:
        """Have the SDK download ``video_ref`` and write it to ``path``."""

        def _download() -> None:
            self.client.files.download(file=video_ref)
            video_ref.save(path)

        await asyncio.to_thread(_download)

    async def get_file(self, name: str) -> Any:
        return await asyncio.to_thread(self.client.files.get, name=name)
