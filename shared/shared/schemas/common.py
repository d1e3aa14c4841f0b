"""Common schemas used across services."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Standard health check response."""

    status: str = "ok"
    timestamp: str | None = None
    environment: str | None = None
    version: str | None = None
    database: str | None = None


class ApiResponse(BaseModel):
    """Uniform envelope returned by every API operation."""

    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None

    def to_content(self) -> dict:
        """Serialize, dropping absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
