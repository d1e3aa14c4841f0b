"""Test fixtures and fake provider/storage objects for video generator tests."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

from modules.video_generator.storage import UploadResult
from shared.config import Settings

DOWNLOAD_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc123:download?alt=media"

VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x01" * 4096

FILE_METADATA = SimpleNamespace(
    name="files/abc123",
    state=SimpleNamespace(value="ACTIVE"),
    mime_type="video/mp4",
    create_time="2026-02-15T12:00:00Z",
    expiration_time="2026-02-17T12:00:00Z",
    update_time="2026-02-15T12:00:05Z",
    uri="https://generativelanguage.googleapis.com/v1beta/files/abc123",
    download_uri=DOWNLOAD_URI,
    source=SimpleNamespace(value="GENERATED"),
    video_metadata=SimpleNamespace(video_duration="8s"),
)


def make_settings(tmp_path=None, **overrides) -> Settings:
    """Settings with fast timings and no external endpoints."""
    values = {
        "environment": "test",
        "google_api_key": "test-key",
        "generation_poll_interval_seconds": 0,
        "file_wait_timeout_seconds": 0.5,
        "file_wait_interval_seconds": 0.01,
        "s3_endpoint": "localhost:9000",
        "s3_access_key": "minio",
        "s3_secret_key": "minio123",
        "s3_bucket": "test-videos",
        "s3_region": "us-east-1",
    }
    if tmp_path is not None:
        values["video_temp_dir"] = str(tmp_path)
    values.update(overrides)
    return Settings(**values)


def make_operation(done: bool, uri: str | None = DOWNLOAD_URI, error=None, name="files/abc123"):
    """Shape of a google-genai GenerateVideosOperation."""
    video = SimpleNamespace(uri=uri, name=name, save=None)
    response = SimpleNamespace(generated_videos=[SimpleNamespace(video=video)]) if done else None
    return SimpleNamespace(name="operations/op-1", done=done, error=error, response=response)


class FakeProvider:
    """VeoProvider stand-in; finishes after ``polls_until_done`` refreshes."""

    def __init__(
        self,
        polls_until_done: int = 2,
        uri: str | None = DOWNLOAD_URI,
        error=None,
        file=FILE_METADATA,
        save_bytes: bytes | None = VIDEO_BYTES,
        save_error: Exception | None = None,
        file_error: Exception | None = None,
    ):
        self.polls_until_done = polls_until_done
        self.uri = uri
        self.error = error
        self.file = file
        self.save_bytes = save_bytes
        self.save_error = save_error
        self.file_error = file_error
        self.submitted: list[str] = []
        self.refresh_count = 0
        self.saved_paths: list[str] = []

    async def submit(self, prompt):
        self.submitted.append(prompt)
        return make_operation(done=self.polls_until_done == 0, uri=self.uri)

    async def refresh(self, operation):
        self.refresh_count += 1
        done = self.polls_until_done is not None and self.refresh_count >= self.polls_until_done
        return make_operation(done=done, uri=self.uri, error=self.error if done else None)

    async def save_to(self, video_ref, path):
        self.saved_paths.append(path)
        if self.save_error is not None:
            raise self.save_error
        if self.save_bytes is not None:
            with open(path, "wb") as f:
                f.write(self.save_bytes)

    async def get_file(self, name):
        if self.file_error is not None:
            raise self.file_error
        return self.file


class FakeBlobStore:
    """BlobStore stand-in that drains uploads the way the real one does.

    Sources are read in a worker thread, as minio's put_object would.
    """

    def __init__(self, fail_times: int = 0):
        self.fail_times = fail_times
        self.uploads: list[dict] = []
        self.attempts = 0

    async def upload(self, source, key, *, content_type="video/mp4", content_length=None, **kwargs):
        self.attempts += 1
        data = await asyncio.to_thread(source.read)
        if self.attempts <= self.fail_times:
            raise RuntimeError("storage unavailable")
        self.uploads.append(
            {"key": key, "data": data, "content_type": content_type, "length": content_length}
        )
        return UploadResult(
            key=key,
            signed_url=f"https://signed.example/{key}",
            public_url=f"https://test-videos.s3.us-east-1.amazonaws.com/{key}",
            bucket="test-videos",
            size=content_length,
        )

    async def sign(self, key, expires_in=3600):
        return f"https://signed.example/{key}?ttl={expires_in}"
