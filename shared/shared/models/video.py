"""Video record model: one row per generated video stored in object storage."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Float, Index, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, validates

from shared.errors import ValidationError
from shared.models.base import Base

MAX_PROMPT_LENGTH = 1000
QUALITIES = ("low", "medium", "high")


class VideoStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    # PROCESSING and FAILED are reserved; the pipeline only stores finished videos
    PROCESSING = "PROCESSING"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp from the provider, assuming UTC when naive."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class VideoRecord(Base):
    __tablename__ = "videos"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    prompt: Mapped[str] = mapped_column(Text)
    storage_key: Mapped[str] = mapped_column(String, unique=True, index=True)
    status: Mapped[str] = mapped_column(String, default=VideoStatus.ACTIVE.value, index=True)
    format: Mapped[str] = mapped_column(String, default="video/mp4")

    # Snapshot of the provider's file metadata, set only when it was returned
    provider_name: Mapped[str | None] = mapped_column(String, default=None, index=True)
    mime_type: Mapped[str | None] = mapped_column(String, default=None)
    create_time: Mapped[str | None] = mapped_column(String, default=None)
    expiration_time: Mapped[str | None] = mapped_column(String, default=None)
    update_time: Mapped[str | None] = mapped_column(String, default=None)
    uri: Mapped[str | None] = mapped_column(Text, default=None)
    download_uri: Mapped[str | None] = mapped_column(Text, default=None)
    source: Mapped[str | None] = mapped_column(String, default=None)
    duration_seconds: Mapped[str | None] = mapped_column(String, default=None)

    # Duration the client asked for; not forwarded to the provider
    requested_duration_seconds: Mapped[float | None] = mapped_column(Float, default=None)
    quality: Mapped[str | None] = mapped_column(String, default=None)
    size_bytes: Mapped[int | None] = mapped_column(BigInteger, default=None)

    # Free-form tracking tag, not a foreign key
    user_id: Mapped[str | None] = mapped_column(String, default=None, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_videos_status_created_at", "status", "created_at"),
        Index("ix_videos_user_id_created_at", "user_id", "created_at"),
    )

    @validates("prompt")
    def _validate_prompt(self, key: str, value: str | None) -> str:
        prompt = (value or "").strip()
        if not prompt:
            raise ValidationError("Prompt is required")
        if len(prompt) > MAX_PROMPT_LENGTH:
            raise ValidationError(f"Prompt cannot exceed {MAX_PROMPT_LENGTH} characters")
        return prompt

    @validates("storage_key")
    def _validate_storage_key(self, key: str, value: str | None) -> str:
        if not value or not value.strip():
            raise ValidationError("Storage key is required")
        return value

    @validates("status")
    def _validate_status(self, key: str, value: str | VideoStatus | None) -> str:
        if value is None:
            return VideoStatus.ACTIVE.value
        try:
            return VideoStatus(value).value
        except ValueError:
            allowed = ", ".join(s.value for s in VideoStatus)
            raise ValidationError(f"Status must be one of: {allowed}") from None

    @validates("quality")
    def _validate_quality(self, key: str, value: str | None) -> str | None:
        if value is not None and value not in QUALITIES:
            raise ValidationError(f"Quality must be one of: {', '.join(QUALITIES)}")
        return value

    @validates("requested_duration_seconds")
    def _validate_requested_duration(self, key: str, value: float | None) -> float | None:
        if value is not None and value < 0:
            raise ValidationError("Duration cannot be negative")
        return value

    @validates("size_bytes")
    def _validate_size(self, key: str, value: int | None) -> int | None:
        if value is not None and value < 0:
            raise ValidationError("Size cannot be negative")
        return value

    @property
    def is_expired(self) -> bool:
        expires_at = parse_timestamp(self.expiration_time)
        return expires_at is not None and expires_at < datetime.now(timezone.utc)

    @property
    def should_expire(self) -> bool:
        """ACTIVE (or not yet saved) and past its expiration time."""
        return self.status in (None, VideoStatus.ACTIVE.value) and self.is_expired

    def refresh_status(self) -> bool:
        """Flip an ACTIVE record to EXPIRED once its expiration time has passed.

        Returns True when the status changed.
        """
        if self.should_expire:
            self.status = VideoStatus.EXPIRED.value
            return True
        return False


@event.listens_for(VideoRecord, "before_insert")
@event.listens_for(VideoRecord, "before_update")
def _expire_on_save(mapper, connection, target: VideoRecord) -> None:
    target.refresh_status()
