"""Video Generator service: FastAPI application."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from modules.video_generator.generator import VideoGenerator
from modules.video_generator.provider import VeoProvider
from modules.video_generator.router import router as videos_router
from modules.video_generator.storage import BlobStore
from modules.video_generator.store import VideoStore
from shared.config import get_settings
from shared.database import Database
from shared.errors import AppError
from shared.schemas.common import ApiResponse, HealthResponse

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
)

logger = structlog.get_logger()
settings = get_settings()

STATUS_MESSAGES: dict[int, str] = {
    400: "The request is invalid. Please check your input.",
    401: "Authentication required.",
    403: "Access denied.",
    404: "The requested resource was not found.",
    422: "The request data is invalid.",
    429: "Too many requests. Please try again later.",
    500: "An internal server error occurred.",
    502: "Bad gateway. The server is temporarily unavailable.",
    503: "Service temporarily unavailable.",
}


def _error_response(
    status_code: int, error: str, code: str | None = None, detail: str | None = None
) -> JSONResponse:
    envelope = ApiResponse(
        success=False,
        error=error,
        message=STATUS_MESSAGES.get(
            status_code, "An error occurred while processing your request."
        ),
    )
    if settings.is_development and (code or detail):
        envelope.data = {"code": code, "originalError": detail}
    return JSONResponse(status_code=status_code, content=envelope.to_content())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service components and publish them on app.state."""
    database = Database(settings.database_url)
    try:
        await database.connect()
    except Exception as e:
        # Connection is retried lazily by the first query
        logger.warning("database_unavailable_at_startup", error=str(e))

    blob_store = BlobStore(settings)
    try:
        await blob_store.ensure_bucket()
    except Exception as e:
        logger.warning("storage_bucket_check_failed", bucket=settings.s3_bucket, error=str(e))

    provider = VeoProvider(settings.google_api_key, model=settings.veo_model)

    app.state.database = database
    app.state.blob_store = blob_store
    app.state.video_store = VideoStore(database)
    app.state.generator = VideoGenerator(provider, blob_store, settings)
    logger.info(
        "video_generator_ready",
        environment=settings.environment,
        bucket=settings.s3_bucket,
        model=settings.veo_model,
    )

    yield

    logger.info("video_generator_shutting_down")
    await database.disconnect()


app = FastAPI(title="Video Generator", version=settings.app_version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "X-Content-Range"],
    max_age=86400,
)

app.include_router(videos_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.expose:
        logger.warning("request_failed", path=request.url.path, status=exc.status_code, error=exc.message)
        error = exc.message
    else:
        logger.error("request_failed", path=request.url.path, status=exc.status_code, error=exc.message)
        error = "Internal server error"
    return _error_response(exc.status_code, error, code=exc.code, detail=exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    return _error_response(400, f"Validation failed: {first.get('msg', 'invalid request')}")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        error = f"Route {request.method} {request.url.path} not found"
    else:
        error = str(exc.detail)
    return _error_response(exc.status_code, error)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=True)
    return _error_response(500, "Internal server error", detail=str(exc))


@app.get("/health")
async def health(request: Request):
    database = getattr(request.app.state, "database", None)
    status = HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.environment,
        version=settings.app_version,
        database="connected" if database is not None and database.is_ready() else "disconnected",
    )
    return ApiResponse(
        success=True,
        data=status.model_dump(),
        message="Video Generator API is running!",
    ).to_content()


@app.get("/api")
async def api_index():
    return {
        "name": "Video Generation API",
        "version": settings.app_version,
        "description": "Generates videos from text prompts and stores them in object storage",
        "endpoints": {
            "GET /health": "Health check",
            "POST /api/videos/generate": "Generate a new video",
            "GET /api/videos/list": "List recorded videos with signed URLs",
            "GET /api/videos/objects": "List stored video objects with signed URLs",
            "GET /api/videos/{key}": "Get a signed URL for one video",
        },
    }


@app.get("/", response_class=HTMLResponse)
async def gallery():
    """Serve the prompt form and video gallery."""
    html_path = Path(__file__).parent / "static" / "index.html"
    return HTMLResponse(content=html_path.read_text())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("modules.video_generator.main:app", host="0.0.0.0", port=settings.port)
