"""S3-compatible blob storage for generated videos."""

from __future__ import annotations

import asyncio
import io
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, AsyncIterator

import structlog
from minio import Minio

from shared.config import Settings
from shared.errors import UploadError

logger = structlog.get_logger()

DEFAULT_EXPIRES_IN = 3600
MIN_EXPIRES_IN = 60
MAX_EXPIRES_IN = 86400

DEFAULT_PART_SIZE = 8 * 1024 * 1024
DEFAULT_PARALLEL_UPLOADS = 3


def clamp_expires_in(value: float | int | None) -> int:
    """Clamp a signed-URL lifetime into [60, 86400] seconds, defaulting to 3600."""
    if value is None:
        return DEFAULT_EXPIRES_IN
    return int(max(MIN_EXPIRES_IN, min(MAX_EXPIRES_IN, value)))


@dataclass
class UploadResult:
    key: str
    signed_url: str
    public_url: str
    bucket: str
    size: int | None = None


@dataclass
class StoredObject:
    key: str
    signed_url: str
    size: int | None = None
    last_modified: datetime | None = None


async def _next_chunk(chunks: AsyncIterator[bytes]) -> bytes | None:
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None


class AsyncIteratorReader:
    """Blocking ``read()`` over an async byte iterator owned by ``loop``.

    Lets the synchronous multipart uploader, running in a worker thread,
    pull an HTTP response body that is being received on the event loop.
    Never call ``read()`` from the loop thread itself.
    """

    def __init__(self, chunks: AsyncIterator[bytes], loop: asyncio.AbstractEventLoop):
        self._chunks = chunks.__aiter__()
        self._loop = loop
        self._buffer = bytearray()
        self._eof = False
        self.bytes_read = 0

    def _pull(self) -> None:
        future = asyncio.run_coroutine_threadsafe(_next_chunk(self._chunks), self._loop)
        chunk = future.result()
        if chunk is None:
            self._eof = True
        else:
            self._buffer.extend(chunk)

    def read(self, size: int = -1) -> bytes:
        while not self._eof and (size < 0 or len(self._buffer) < size):
            self._pull()
        if size < 0 or size > len(self._buffer):
            size = len(self._buffer)
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        self.bytes_read += len(data)
        return data


def _sort_newest_first(objects: list[StoredObject]) -> list[StoredObject]:
    """Newest first; objects without a timestamp go last."""
    dated = [o for o in objects if o.last_modified is not None]
    undated = [o for o in objects if o.last_modified is None]
    dated.sort(key=lambda o: o.last_modified, reverse=True)
    return dated + undated


class BlobStore:
    """Uploads, signs and lists objects in one bucket."""

    def __init__(self, settings: Settings, client: Minio | None = None):
        self.bucket = settings.s3_bucket
        self.region = settings.s3_region
        self.public_url_base = settings.s3_public_url.rstrip("/")
        self.part_size = settings.s3_part_size or DEFAULT_PART_SIZE
        self.parallel_uploads = settings.s3_parallel_uploads or DEFAULT_PARALLEL_UPLOADS
        self.client = client or Minio(
            settings.s3_endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            secure=settings.s3_secure,
            region=settings.s3_region,
        )

    async def ensure_bucket(self) -> None:
        """Create the bucket if it does not exist yet."""
        exists = await asyncio.to_thread(self.client.bucket_exists, self.bucket)
        if not exists:
            await asyncio.to_thread(self.client.make_bucket, self.bucket, self.region)
            logger.info("storage_bucket_created", bucket=self.bucket)

    def public_url(self, key: str) -> str:
        if self.public_url_base:
            return f"{self.public_url_base}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def upload(
        self,
        source: bytes | Any,
        key: str,
        *,
        content_type: str = "video/mp4",
        content_length: int | None = None,
        metadata: dict[str, str] | None = None,
        expires_in: int | None = None,
    ) -> UploadResult:
        """Multipart-upload ``source`` (bytes or a readable stream) under ``key``.

        Streams of unknown length are sent part by part without buffering the
        whole payload.

        Raises:
            UploadError: If the storage service rejects the upload.
        """
        if isinstance(source, (bytes, bytearray)):
            content_length = len(source)
            source = io.BytesIO(source)

        logger.info("storage_upload_started", key=key, length=content_length)
        try:
            await asyncio.to_thread(
                self.client.put_object,
                self.bucket,
                key,
                source,
                length=content_length if content_length is not None else -1,
                content_type=content_type,
                metadata=metadata,
                part_size=self.part_size,
                num_parallel_uploads=self.parallel_uploads,
            )
        except Exception as e:
            logger.error("storage_upload_failed", key=key, error=str(e))
            raise UploadError(f"Failed to upload to storage: {e}") from e

        logger.info("storage_upload_completed", key=key)
        return UploadResult(
            key=key,
            signed_url=await self.sign(key, expires_in),
            public_url=self.public_url(key),
            bucket=self.bucket,
            size=content_length,
        )

    async def sign(self, key: str, expires_in: int | None = DEFAULT_EXPIRES_IN) -> str:
        """Issue a time-limited GET URL; the lifetime is clamped, never rejected."""
        ttl = clamp_expires_in(expires_in)
        return await asyncio.to_thread(
            self.client.presigned_get_object,
            self.bucket,
            key,
            expires=timedelta(seconds=ttl),
        )

    async def list_objects(
        self, prefix: str = "videos/", expires_in: int | None = DEFAULT_EXPIRES_IN
    ) -> list[StoredObject]:
        """Every object under ``prefix`` with a signed URL, newest first."""

        def _list_all() -> list[Any]:
            # The client follows continuation tokens until the listing is exhausted
            return list(self.client.list_objects(self.bucket, prefix=prefix, recursive=True))

        objects = []
        for obj in await asyncio.to_thread(_list_all):
            if not obj.object_name or obj.is_dir:
                continue
            objects.append(
                StoredObject(
                    key=obj.object_name,
                    signed_url=await self.sign(obj.object_name, expires_in),
                    size=obj.size if isinstance(obj.size, int) else None,
                    last_modified=obj.last_modified,
                )
            )
        return _sort_newest_first(objects)
