"""Media router: direct-to-blob video uploads and video management."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.profile import Profile
from models.video import Video, VideoStatus
from routers.auth_scope import AuthContext, get_auth_context, require_permission
from routers.dependencies import get_blob_storage, get_current_profile, get_event_bus
from routers.rate_limit import rate_limit
from services import media as media_service
from services.blob_storage import BlobStorage
from services.permissions import Permission
from services.profiles import get_profile_by_user

router = APIRouter()


class InitiateUploadRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    file_name: str = Field(min_length=1, max_length=255)
    file_size: int = Field(gt=0)
    mime_type: str


class InitiateUploadResponse(BaseModel):
    video_id: str
    upload_id: str
    upload_url: str
    expires_at: datetime
    test_mode: bool


class UploadProgressRequest(BaseModel):
    progress: int = Field(ge=0, le=100)


class UploadProgressResponse(BaseModel):
    upload_id: str
    video_id: str
    status: str
    progress: int


class UpdateVideoRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    visibility: Optional[Literal["public", "private"]] = None


class VideoResponse(BaseModel):
    id: str
    profile_id: str
    title: str
    description: str
    file_name: str
    file_size: int
    mime_type: str
    status: str
    moderation_reason: Optional[str] = None
    visibility: str
    view_count: int
    stream_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VideoListResponse(BaseModel):
    videos: List[VideoResponse]
    total: int
    limit: int
    offset: int


def serialize_video(video: Video, storage: Optional[BlobStorage] = None) -> VideoResponse:
    stream_url = None
    if storage is not None and video.status == VideoStatus.APPROVED.value:
        stream_url = storage.generate_read_url(video.blob_name).url
    return VideoResponse(
        id=video.id,
        profile_id=video.profile_id,
        title=video.title,
        description=video.description or "",
        file_name=video.file_name,
        file_size=int(video.file_size or 0),
        mime_type=video.mime_type,
        status=video.status,
        moderation_reason=video.moderation_reason,
        visibility=video.visibility,
        view_count=int(video.view_count or 0),
        stream_url=stream_url,
        created_at=video.created_at,
        updated_at=video.updated_at,
    )


@router.post("/videos", response_model=InitiateUploadResponse, status_code=201)
async def initiate_upload(
    request: InitiateUploadRequest,
    _rate_limit: None = Depends(rate_limit("media_upload_initiate", limit=60, window_seconds=3600)),
    _auth: AuthContext = Depends(require_permission(Permission.UPLOAD_VIDEO)),
    profile: Profile = Depends(get_current_profile),
    storage: BlobStorage = Depends(get_blob_storage),
    db: AsyncSession = Depends(get_db),
):
    """Create a video record and return a pre-signed upload URL."""
    video, upload, signed = await media_service.initiate_upload(
        db,
        storage,
        profile.id,
        title=request.title,
        description=request.description,
        file_name=request.file_name,
        file_size=request.file_size,
        mime_type=request.mime_type,
    )
    return InitiateUploadResponse(
        video_id=video.id,
        upload_id=upload.id,
        upload_url=signed.url,
        expires_at=signed.expires_at,
        test_mode=signed.test_mode,
    )


@router.patch("/uploads/{upload_id}", response_model=UploadProgressResponse)
async def update_upload_progress(
    upload_id: str,
    request: UploadProgressRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    upload = await media_service.update_upload_progress(db, upload_id, profile.id, request.progress)
    return UploadProgressResponse(
        upload_id=upload.id,
        video_id=upload.video_id,
        status=upload.status,
        progress=int(upload.progress or 0),
    )


@router.post("/videos/{video_id}/complete", response_model=VideoResponse)
async def complete_upload(
    video_id: str,
    profile: Profile = Depends(get_current_profile),
    bus: Optional[Any] = Depends(get_event_bus),
    db: AsyncSession = Depends(get_db),
):
    """Mark an upload finished and queue it for moderation."""
    video = await media_service.complete_upload(db, bus, video_id, profile.id)
    return serialize_video(video)


@router.get("/videos/{video_id}", response_model=VideoResponse)
async def get_video(
    video_id: str,
    auth: AuthContext = Depends(get_auth_context),
    storage: BlobStorage = Depends(get_blob_storage),
    db: AsyncSession = Depends(get_db),
):
    video = await media_service.get_video(db, video_id)
    if video.status != VideoStatus.APPROVED.value or video.visibility != "public":
        own_profile = await get_profile_by_user(db, auth.user_id)
        is_owner = own_profile is not None and own_profile.id == video.profile_id
        if not is_owner and not auth.can(Permission.VIEW_ALL_VIDEOS):
            raise HTTPException(status_code=404, detail="Video not found")
    return serialize_video(video, storage)


@router.get("/profiles/{profile_id}/videos", response_model=VideoListResponse)
async def list_profile_videos(
    profile_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(get_auth_context),
    storage: BlobStorage = Depends(get_blob_storage),
    db: AsyncSession = Depends(get_db),
):
    own_profile = await get_profile_by_user(db, auth.user_id)
    include_hidden = own_profile is not None and own_profile.id == profile_id
    videos, total = await media_service.list_profile_videos(
        db,
        profile_id,
        limit=limit,
        offset=offset,
        include_hidden=include_hidden,
    )
    return VideoListResponse(
        videos=[serialize_video(video, storage) for video in videos],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.patch("/videos/{video_id}", response_model=VideoResponse)
async def update_video(
    video_id: str,
    request: UpdateVideoRequest,
    profile: Profile = Depends(get_current_profile),
    bus: Optional[Any] = Depends(get_event_bus),
    db: AsyncSession = Depends(get_db),
):
    """Edit a video; text changes send it back through moderation."""
    video = await media_service.update_video(
        db,
        bus,
        video_id,
        profile.id,
        request.model_dump(exclude_none=True),
    )
    return serialize_video(video)


@router.delete("/videos/{video_id}", status_code=204)
async def delete_video(
    video_id: str,
    _auth: AuthContext = Depends(require_permission(Permission.DELETE_VIDEO)),
    profile: Profile = Depends(get_current_profile),
    storage: BlobStorage = Depends(get_blob_storage),
    db: AsyncSession = Depends(get_db),
):
    await media_service.delete_video(db, storage, video_id, profile.id)
