"""Application error taxonomy.

Every error the service reports to clients derives from ``AppError``. The
FastAPI handlers in the service turn them into the response envelope::

    raise ValidationError("Prompt is required and must be a non-empty string")
    # -> 400 {"success": false, "error": "...", "message": "..."}

``expose=False`` errors keep their message out of production responses.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors with an HTTP status."""

    status_code: int = 500
    code: str | None = None
    expose: bool = True

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        expose: bool | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        if expose is not None:
            self.expose = expose


class ValidationError(AppError):
    """Bad client input."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class GenerationError(AppError):
    """Provider or pipeline failure while generating a video."""

    status_code = 500
    code = "GENERATION_ERROR"


class UploadError(AppError):
    """Neither the streaming nor the disk-staging upload succeeded."""

    status_code = 500
    code = "UPLOAD_ERROR"


class FileWaitTimeoutError(AppError):
    """A staged file never appeared on disk within the timeout."""

    status_code = 500
    code = "FILE_WAIT_TIMEOUT"


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"
    expose = False
