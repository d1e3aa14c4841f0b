"""Video generation and listing endpoints."""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from modules.video_generator.generator import VideoGenerator
from modules.video_generator.storage import BlobStore
from modules.video_generator.store import VideoStore
from modules.video_generator.validation import parse_expires_in, validate_generation_request
from shared.errors import AppError, NotFoundError
from shared.models.video import QUALITIES, VideoStatus
from shared.schemas.common import ApiResponse
from shared.schemas.videos import GenerateVideoRequest, VideoListItem, VideoResult

logger = structlog.get_logger()

router = APIRouter(prefix="/api/videos", tags=["videos"])


# Components are built during app lifespan and published on app.state


def get_generator(request: Request) -> VideoGenerator:
    return request.app.state.generator


def get_video_store(request: Request) -> VideoStore:
    return request.app.state.video_store


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def _ok(data, message: str | None = None) -> JSONResponse:
    return JSONResponse(ApiResponse(success=True, data=data, message=message).to_content())


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _record_fields(request: GenerateVideoRequest, result: VideoResult) -> dict:
    """Map a generation result onto VideoRecord columns."""
    try:
        status = VideoStatus(result.status).value
    except ValueError:
        # Provider states outside the record's enum (e.g. STATE_UNSPECIFIED)
        status = VideoStatus.ACTIVE.value

    fields = {
        "prompt": result.prompt or request.prompt,
        "storage_key": result.storage_key,
        "status": status,
        "format": result.format or "video/mp4",
        "provider_name": result.name,
        "mime_type": result.mime_type,
        "create_time": result.create_time,
        "expiration_time": result.expiration_time,
        "update_time": result.update_time,
        "uri": result.uri,
        "download_uri": result.download_uri,
        "source": result.source,
        "duration_seconds": result.duration_seconds,
        "requested_duration_seconds": float(request.duration) if request.duration is not None else None,
        "size_bytes": result.size_bytes,
        "user_id": request.user_id,
    }
    if request.quality in QUALITIES:
        fields["quality"] = request.quality
    return {k: v for k, v in fields.items() if v is not None}


@router.post("/generate")
async def generate_video(
    request: Request,
    generator: VideoGenerator = Depends(get_generator),
    video_store: VideoStore = Depends(get_video_store),
):
    """Generate a video from a prompt and store it.

    Blocks until the provider job finishes and the upload completes.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    gen_request = validate_generation_request(body)

    result = await generator.generate(gen_request)

    # The video is already stored; a metadata write failure does not fail the request
    persisted = await video_store.create_best_effort(**_record_fields(gen_request, result))
    if not persisted.degraded:
        logger.info("video_record_saved", storage_key=result.storage_key)

    return _ok(_dump(result), "Video generated successfully")


@router.get("/list")
async def list_videos(
    expires_in: str | None = Query(default=None, alias="expiresIn"),
    video_store: VideoStore = Depends(get_video_store),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Every recorded video with a fresh signed URL, newest first.

    One failed signature fails the whole listing.
    """
    ttl = parse_expires_in(expires_in)
    try:
        records = await video_store.find_all()
        urls = await asyncio.gather(*(blob_store.sign(r.storage_key, ttl) for r in records))
    except Exception as e:
        logger.error("video_list_failed", error=str(e))
        raise AppError("Failed to list videos") from e

    items = [
        _dump(VideoListItem(key=r.storage_key, url=url, last_modified=r.updated_at))
        for r, url in zip(records, urls)
    ]
    return _ok(items, f"Retrieved {len(items)} videos successfully")


@router.get("/objects")
async def list_stored_objects(
    expires_in: str | None = Query(default=None, alias="expiresIn"),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Objects under ``videos/`` read straight from storage, newest first."""
    ttl = parse_expires_in(expires_in)
    try:
        objects = await blob_store.list_objects("videos/", ttl)
    except Exception as e:
        logger.error("video_object_list_failed", error=str(e))
        raise AppError("Failed to list stored videos") from e

    items = [
        _dump(VideoListItem(key=o.key, url=o.signed_url, size=o.size, last_modified=o.last_modified))
        for o in objects
    ]
    return _ok(items, f"Retrieved {len(items)} stored objects successfully")


@router.get("/{storage_key:path}")
async def get_video(
    storage_key: str,
    expires_in: str | None = Query(default=None, alias="expiresIn"),
    video_store: VideoStore = Depends(get_video_store),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Signed URL and status for one recorded video."""
    record = await video_store.find_by_storage_key(storage_key)
    if record is None:
        raise NotFoundError("Video")

    url = await blob_store.sign(record.storage_key, parse_expires_in(expires_in))
    return _ok(
        {
            "key": record.storage_key,
            "url": url,
            "status": record.status,
            "prompt": record.prompt,
            "lastModified": record.updated_at.isoformat() if record.updated_at else None,
        }
    )
