"""Video metadata persistence."""

from __future__ import annotations

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import set_committed_value

from shared.database import Database
from shared.errors import ValidationError
from shared.models.video import VideoRecord, VideoStatus
from shared.result import Result

logger = structlog.get_logger()


class VideoStore:
    """Reads and writes VideoRecord rows through a shared Database handle."""

    def __init__(self, database: Database):
        self.database = database

    async def create(self, **fields) -> VideoRecord:
        """Insert one record.

        Raises:
            ValidationError: If a field violates the schema or the storage
                key is already taken.
        """
        fields.setdefault("status", VideoStatus.ACTIVE.value)
        fields.setdefault("format", "video/mp4")
        record = VideoRecord(**fields)

        async with self.database.session_factory() as session:
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ValidationError(
                    f"A video with storage key '{record.storage_key}' already exists"
                ) from e

        logger.info("video_record_created", storage_key=record.storage_key, status=record.status)
        return record

    async def create_best_effort(self, **fields) -> Result[VideoRecord]:
        """Like create(), but a failure yields a degraded Result instead of raising."""
        try:
            return Result.ok(await self.create(**fields))
        except Exception as e:
            logger.warning(
                "video_record_persist_failed",
                storage_key=fields.get("storage_key"),
                error=str(e),
            )
            return Result.degrade(str(e))

    async def find_all(self) -> list[VideoRecord]:
        """All records, most recently updated first."""
        return await self._select(
            select(VideoRecord).order_by(VideoRecord.updated_at.desc())
        )

    async def find_by_user_id(self, user_id: str) -> list[VideoRecord]:
        return await self._select(
            select(VideoRecord)
            .where(VideoRecord.user_id == user_id)
            .order_by(VideoRecord.created_at.desc())
        )

    async def find_by_status(self, status: VideoStatus | str) -> list[VideoRecord]:
        status = VideoStatus(status).value
        # ACTIVE rows are loaded too: some of them may turn out to be EXPIRED
        records = await self._select(
            select(VideoRecord)
            .where(VideoRecord.status.in_([status, VideoStatus.ACTIVE.value]))
            .order_by(VideoRecord.created_at.desc())
        )
        return [r for r in records if r.status == status]

    async def find_by_storage_key(self, storage_key: str) -> VideoRecord | None:
        records = await self._select(
            select(VideoRecord).where(VideoRecord.storage_key == storage_key)
        )
        return records[0] if records else None

    async def find_expired(self) -> list[VideoRecord]:
        """Records stored as ACTIVE whose provider expiration time has passed.

        Reading them writes the EXPIRED status back, so each record is
        returned by at most one call.
        """
        records = await self._select(
            select(VideoRecord).where(
                VideoRecord.expiration_time.is_not(None),
                VideoRecord.status == VideoStatus.ACTIVE.value,
            )
        )
        return [r for r in records if r.is_expired]

    async def _select(self, stmt) -> list[VideoRecord]:
        async with self.database.session_factory() as session:
            result = await session.execute(stmt)
            records = list(result.scalars().all())
            expired = [r for r in records if r.should_expire]
            if expired:
                await self._mark_expired(session, expired)
        return records

    async def _mark_expired(self, session, records: list[VideoRecord]) -> None:
        """Write EXPIRED back for ``records``; ``updated_at`` keeps its value."""
        await session.execute(
            update(VideoRecord)
            .where(VideoRecord.id.in_([r.id for r in records]))
            .values(status=VideoStatus.EXPIRED.value, updated_at=VideoRecord.updated_at)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        for record in records:
            set_committed_value(record, "status", VideoStatus.EXPIRED.value)
        logger.info("video_records_expired", count=len(records))
