"""Record store used by the moderation worker."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Protocol
import uuid

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

from models.moderation_result import ModerationResult
from models.video import Video, VideoStatus
from moderation.models import MediaRecord, ModerationVerdict, RecordNotFoundError


class RecordStore(Protocol):
    async def get_record(self, video_id: str) -> Optional[MediaRecord]:
        ...

    async def update_status(self, video_id: str, status: VideoStatus, reason: str) -> None:
        ...

    async def insert_verdict(self, video_id: str, verdict: ModerationVerdict) -> None:
        ...


class SqlRecordStore:
    """SQLAlchemy-backed store. Each call runs in its own short session."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get_record(self, video_id: str) -> Optional[MediaRecord]:
        async with self._session_maker() as db:
            result = await db.execute(select(Video).where(Video.id == video_id))
            video = result.scalar_one_or_none()
            if video is None:
                return None
            return MediaRecord(
                id=video.id,
                profile_id=video.profile_id,
                title=video.title or "",
                description=video.description or "",
                status=VideoStatus(video.status),
                created_at=video.created_at,
                updated_at=video.updated_at,
            )

    async def update_status(self, video_id: str, status: VideoStatus, reason: str) -> None:
        if status == VideoStatus.ANALYZING:
            raise ValueError("analyzing is a transient status and is never persisted")
        async with self._session_maker() as db:
            result = await db.execute(
                update(Video)
                .where(Video.id == video_id)
                .values(
                    status=status.value,
                    moderation_reason=reason[:1000],
                    updated_at=datetime.now(timezone.utc),
                )
            )
            if result.rowcount == 0:
                await db.rollback()
                raise RecordNotFoundError(f"Video {video_id} not found")
            await db.commit()

    async def insert_verdict(self, video_id: str, verdict: ModerationVerdict) -> None:
        async with self._session_maker() as db:
            db.add(
                ModerationResult(
                    id=str(uuid.uuid4()),
                    video_id=video_id,
                    approved=verdict.approved,
                    confidence=verdict.confidence,
                    flags=list(verdict.flags),
                    reason=verdict.reason,
                    suggested_tags=list(verdict.suggested_tags),
                    content_summary=verdict.content_summary,
                    result_data=verdict.to_json(),
                    created_at=datetime.now(timezone.utc),
                )
            )
            await db.commit()
