"""Video upload lifecycle: initiate, track progress, complete, manage."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import time
from typing import Any, Dict, List, Optional, Tuple
import uuid

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.video import Video, VideoStatus
from models.video_upload import VideoUpload
from moderation.models import UploadCompletedEvent
from services.blob_storage import BlobStorage, SignedUrl
from services.errors import (
    ConflictError,
    NotFoundError,
    PayloadTooLargeError,
    PermissionDeniedError,
    UnsupportedMediaTypeError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

UPLOAD_EVENT_TYPE = "video.uploaded"
VISIBILITIES = ("public", "private")
EDITABLE_FIELDS = ("title", "description", "visibility")
MODERATED_FIELDS = ("title", "description")


def blob_name_for(profile_id: str, video_id: str) -> str:
    return f"{profile_id}/{video_id}"


def build_upload_completed_event(video: Video) -> UploadCompletedEvent:
    return UploadCompletedEvent(
        event_type=UPLOAD_EVENT_TYPE,
        video_id=video.id,
        profile_id=video.profile_id,
        title=video.title,
        timestamp=int(time.time()),
    )


async def _publish_upload_completed(bus: Optional[Any], video: Video) -> None:
    if bus is None:
        logger.warning("Event bus unavailable; video %s will not be moderated until republished", video.id)
        return
    event = build_upload_completed_event(video)
    try:
        await bus.publish(settings.MODERATION_UPLOADED_SUBJECT, event.model_dump())
    except Exception:
        logger.exception("Failed to publish video uploaded event for %s", video.id)


async def _get_video(db: AsyncSession, video_id: str) -> Video:
    result = await db.execute(select(Video).where(Video.id == video_id))
    video = result.scalar_one_or_none()
    if not video:
        raise NotFoundError("Video not found")
    return video


async def _get_owned_video(db: AsyncSession, video_id: str, profile_id: str) -> Video:
    video = await _get_video(db, video_id)
    if video.profile_id != profile_id:
        raise PermissionDeniedError("Video belongs to another profile")
    return video


async def initiate_upload(
    db: AsyncSession,
    storage: BlobStorage,
    profile_id: str,
    *,
    title: str,
    description: str,
    file_name: str,
    file_size: int,
    mime_type: str,
) -> Tuple[Video, VideoUpload, SignedUrl]:
    """Create the video + upload rows and hand back a write URL for the client."""
    if mime_type not in settings.ALLOWED_VIDEO_MIME_TYPES:
        raise UnsupportedMediaTypeError(f"Unsupported video type: {mime_type}")
    if file_size <= 0:
        raise ValidationFailedError("file_size must be positive")
    if file_size > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError("File too large")

    video_id = str(uuid.uuid4())
    video = Video(
        id=video_id,
        profile_id=profile_id,
        title=title.strip(),
        description=(description or "").strip(),
        file_name=file_name,
        file_size=file_size,
        mime_type=mime_type,
        blob_name=blob_name_for(profile_id, video_id),
        status=VideoStatus.UPLOADING.value,
        visibility="public",
        view_count=0,
    )
    upload = VideoUpload(
        id=str(uuid.uuid4()),
        video_id=video_id,
        status="initiated",
        progress=0,
    )
    db.add(video)
    db.add(upload)
    await db.commit()
    await db.refresh(video)
    await db.refresh(upload)

    signed = storage.generate_upload_url(video.blob_name)
    logger.info("upload_initiated video=%s upload=%s test_mode=%s", video.id, upload.id, signed.test_mode)
    return video, upload, signed


async def update_upload_progress(db: AsyncSession, upload_id: str, profile_id: str, progress: int) -> VideoUpload:
    result = await db.execute(select(VideoUpload).where(VideoUpload.id == upload_id))
    upload = result.scalar_one_or_none()
    if not upload:
        raise NotFoundError("Upload not found")
    video = await _get_owned_video(db, upload.video_id, profile_id)
    if upload.status == "completed":
        raise ConflictError("Upload already completed")

    upload.progress = max(0, min(int(progress), 100))
    if upload.progress >= 100:
        upload.status = "processing"
        video.status = VideoStatus.PROCESSING.value
    else:
        upload.status = "in_progress"
    await db.commit()
    await db.refresh(upload)
    return upload


async def complete_upload(db: AsyncSession, bus: Optional[Any], video_id: str, profile_id: str) -> Video:
    """Mark the upload finished and announce it to the moderation worker."""
    video = await _get_owned_video(db, video_id, profile_id)
    status = VideoStatus(video.status)
    if status.is_terminal or status == VideoStatus.UPLOADED:
        raise ConflictError("Upload already completed")

    now = datetime.now(timezone.utc)
    video.status = VideoStatus.UPLOADED.value
    video.updated_at = now
    uploads = await db.execute(select(VideoUpload).where(VideoUpload.video_id == video_id))
    for upload in uploads.scalars().all():
        if upload.status != "completed":
            upload.status = "completed"
            upload.progress = 100
            upload.completed_at = now
    await db.commit()
    await db.refresh(video)

    await _publish_upload_completed(bus, video)
    logger.info("upload_completed video=%s", video_id)
    return video


async def get_video(db: AsyncSession, video_id: str) -> Video:
    return await _get_video(db, video_id)


async def list_profile_videos(
    db: AsyncSession,
    profile_id: str,
    limit: int = 20,
    offset: int = 0,
    include_hidden: bool = False,
) -> Tuple[List[Video], int]:
    filters = [Video.profile_id == profile_id]
    if not include_hidden:
        filters.extend([Video.status == VideoStatus.APPROVED.value, Video.visibility == "public"])
    total = await db.execute(select(func.count(Video.id)).where(*filters))
    result = await db.execute(
        select(Video).where(*filters).order_by(Video.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all()), int(total.scalar() or 0)


async def update_video(
    db: AsyncSession,
    bus: Optional[Any],
    video_id: str,
    profile_id: str,
    fields: Dict[str, Any],
) -> Video:
    """
    Edit title, description or visibility.

    Changing the text of a video that has left the upload phase sends it
    back to ``uploaded`` and through moderation again.
    """
    video = await _get_owned_video(db, video_id, profile_id)
    visibility = fields.get("visibility")
    if visibility is not None and visibility not in VISIBILITIES:
        raise ValidationFailedError("visibility must be public or private")

    text_changed = any(
        fields.get(key) is not None and fields[key] != getattr(video, key)
        for key in MODERATED_FIELDS
    )
    for key in EDITABLE_FIELDS:
        value = fields.get(key)
        if value is not None:
            setattr(video, key, value)

    status = VideoStatus(video.status)
    remoderate = text_changed and (status.is_terminal or status == VideoStatus.UPLOADED)
    if remoderate:
        video.status = VideoStatus.UPLOADED.value
        video.moderation_reason = None
    video.updated_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(video)

    if remoderate:
        await _publish_upload_completed(bus, video)
        logger.info("video_resubmitted_for_moderation video=%s", video_id)
    return video


async def delete_video(db: AsyncSession, storage: BlobStorage, video_id: str, profile_id: str) -> None:
    video = await _get_owned_video(db, video_id, profile_id)
    try:
        await storage.delete_blob(video.blob_name)
    except Exception as exc:
        logger.error("Failed to delete blob %s: %s", video.blob_name, exc)
    await db.delete(video)
    await db.commit()
    logger.info("video_deleted video=%s", video_id)
