"""Video generation pipeline: provider job -> object storage -> normalized result."""

from __future__ import annotations

import asyncio
import os
import time
import uuid

import httpx
import structlog

from modules.video_generator.polling import poll_until, wait_for_file
from modules.video_generator.provider import (
    VeoProvider,
    build_auth_headers,
    extract_video_reference,
    file_metadata_fields,
    operation_error_message,
    resolve_download_uri,
    resolve_file_name,
)
from modules.video_generator.storage import AsyncIteratorReader, BlobStore, UploadResult
from shared.config import Settings
from shared.errors import GenerationError, UploadError
from shared.result import Result
from shared.schemas.videos import GenerateVideoRequest, VideoResult

logger = structlog.get_logger()

VIDEO_CONTENT_TYPE = "video/mp4"
DOWNLOAD_TIMEOUT = httpx.Timeout(30.0, read=300.0)


def generate_storage_key(now_ms: int | None = None) -> str:
    """``videos/<epoch-ms>.mp4``; same-millisecond collisions are not guarded."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"videos/{now_ms}.mp4"


def remove_temp_file(path: str) -> Result[None]:
    """Delete a staged file; failure is reported, never raised."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return Result.ok()
    except OSError as e:
        return Result.degrade(str(e))
    return Result.ok()


class VideoGenerator:
    """Drives one prompt through the provider and into object storage."""

    def __init__(
        self,
        provider: VeoProvider,
        blob_store: BlobStore,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.provider = provider
        self.blob_store = blob_store
        self.settings = settings
        self._http_client = http_client

    async def generate(self, request: GenerateVideoRequest) -> VideoResult:
        """Run the full pipeline for one request.

        Raises:
            GenerationError: On any provider or upload failure. Errors that are
                not already GenerationErrors are wrapped, keeping their message.
        """
        logger.info("video_generation_started", prompt=request.prompt, user_id=request.user_id)
        try:
            operation = await self.provider.submit(request.prompt)
            operation = await self._wait_for_completion(operation)
            video_ref = extract_video_reference(operation)

            storage_key = generate_storage_key()
            upload = await self._upload(video_ref, storage_key)

            metadata = await self._fetch_metadata(video_ref)
        except GenerationError:
            raise
        except Exception as e:
            logger.error("video_generation_failed", error=str(e), exc_info=True)
            raise GenerationError(f"Failed to generate video: {e}") from e

        result = VideoResult(
            status=metadata.pop("status", None) or "ACTIVE",
            storage_key=upload.key,
            public_url=upload.public_url,
            prompt=request.prompt,
            size_bytes=upload.size,
            **metadata,
        )
        logger.info("video_generation_completed", storage_key=result.storage_key)
        return result

    async def _wait_for_completion(self, operation):
        def _is_done(op) -> bool:
            return bool(getattr(op, "done", False))

        operation = await poll_until(
            self.provider.refresh,
            operation,
            _is_done,
            interval=self.settings.generation_poll_interval_seconds,
            max_attempts=self.settings.generation_max_polls,
        )

        message = operation_error_message(operation)
        if message:
            logger.error("veo_job_failed", error=message)
            raise GenerationError(f"Video generation failed: {message}")
        return operation

    async def _upload(self, video_ref, storage_key: str) -> UploadResult:
        """Stream straight from the provider, falling back once to disk staging."""
        download_uri = resolve_download_uri(video_ref)
        stream_error: Exception | None = None

        if download_uri:
            try:
                return await self._stream_upload(download_uri, storage_key)
            except Exception as e:
                stream_error = e
                logger.warning("video_stream_upload_failed", key=storage_key, error=str(e))

        try:
            return await self._disk_upload(video_ref, storage_key)
        except Exception as e:
            logger.error("video_disk_upload_failed", key=storage_key, error=str(e))
            reason = f"disk staging failed: {e}"
            if stream_error is not None:
                reason = f"streaming failed: {stream_error}; {reason}"
            raise UploadError(f"Upload failed ({reason})") from e

    async def _stream_upload(self, download_uri: str, storage_key: str) -> UploadResult:
        logger.info("video_stream_upload_started", key=storage_key)
        headers = build_auth_headers(download_uri, self.settings.google_api_key)

        client = self._http_client or httpx.AsyncClient(
            timeout=DOWNLOAD_TIMEOUT, follow_redirects=True
        )
        try:
            async with client.stream("GET", download_uri, headers=headers) as resp:
                if not resp.is_success:
                    raise UploadError(
                        f"Fetch failed: {resp.status_code} {resp.reason_phrase}"
                    )
                reader = AsyncIteratorReader(resp.aiter_bytes(), asyncio.get_running_loop())
                upload = await self.blob_store.upload(
                    reader, storage_key, content_type=VIDEO_CONTENT_TYPE
                )
                if upload.size is None:
                    upload.size = reader.bytes_read
                return upload
        finally:
            if self._http_client is None:
                await client.aclose()

    async def _disk_upload(self, video_ref, storage_key: str) -> UploadResult:
        logger.info("video_disk_upload_started", key=storage_key)
        temp_dir = os.path.abspath(self.settings.video_temp_dir)
        os.makedirs(temp_dir, exist_ok=True)
        temp_path = os.path.join(
            temp_dir, f"video-{time.time_ns() // 1_000_000}-{uuid.uuid4().hex[:8]}.mp4"
        )

        try:
            await self.provider.save_to(video_ref, temp_path)
            await wait_for_file(
                temp_path,
                timeout=self.settings.file_wait_timeout_seconds,
                interval=self.settings.file_wait_interval_seconds,
            )
            size = os.path.getsize(temp_path)
            with open(temp_path, "rb") as f:
                return await self.blob_store.upload(
                    f, storage_key, content_type=VIDEO_CONTENT_TYPE, content_length=size
                )
        finally:
            cleanup = remove_temp_file(temp_path)
            if cleanup.degraded:
                logger.warning(
                    "video_temp_cleanup_failed", key=storage_key, path=temp_path, error=cleanup.error
                )

    async def _fetch_metadata(self, video_ref) -> dict[str, str]:
        """Provider file metadata as VideoResult fields; empty when unavailable."""
        file_name = resolve_file_name(video_ref)
        if not file_name:
            logger.warning("veo_metadata_skipped", reason="no file name")
            return {}
        try:
            file = await self.provider.get_file(file_name)
        except Exception as e:
            logger.warning("veo_metadata_fetch_failed", file_name=file_name, error=str(e))
            return {}
        return file_metadata_fields(file)
