"""Discovery router: search, feed, trending and recommendations."""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.profile import Profile
from routers.auth_scope import AuthContext, require_permission
from routers.dependencies import get_blob_storage, get_current_profile
from routers.media import VideoResponse, serialize_video
from routers.profiles import ProfileResponse, serialize_profile
from services import discovery as discovery_service
from services.blob_storage import BlobStorage
from services.permissions import Permission

router = APIRouter()


class ProfileSearchResponse(BaseModel):
    profiles: List[ProfileResponse]
    total: int
    limit: int
    offset: int


class VideoPageResponse(BaseModel):
    videos: List[VideoResponse]
    total: int
    limit: int
    offset: int


@router.get("/profiles", response_model=ProfileSearchResponse)
async def search_profiles(
    q: str = Query("", max_length=200),
    profile_type: Optional[Literal["player", "scout", "academy"]] = None,
    position: Optional[str] = None,
    location: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    _auth: AuthContext = Depends(require_permission(Permission.VIEW_PROFILES)),
    db: AsyncSession = Depends(get_db),
):
    profiles, total = await discovery_service.search_profiles(
        db,
        q,
        profile_type=profile_type,
        position=position,
        location=location,
        limit=limit,
        offset=offset,
    )
    return ProfileSearchResponse(
        profiles=[serialize_profile(profile) for profile in profiles],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/videos", response_model=VideoPageResponse)
async def search_videos(
    q: str = Query("", max_length=200),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    _auth: AuthContext = Depends(require_permission(Permission.VIEW_PROFILES)),
    storage: BlobStorage = Depends(get_blob_storage),
    db: AsyncSession = Depends(get_db),
):
    videos, total = await discovery_service.search_videos(db, q, limit=limit, offset=offset)
    return VideoPageResponse(
        videos=[serialize_video(video, storage) for video in videos],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/feed", response_model=VideoPageResponse)
async def get_feed(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    _auth: AuthContext = Depends(require_permission(Permission.VIEW_PROFILES)),
    storage: BlobStorage = Depends(get_blob_storage),
    db: AsyncSession = Depends(get_db),
):
    """Newest approved public videos."""
    videos, total = await discovery_service.get_feed(db, limit=limit, offset=offset)
    return VideoPageResponse(
        videos=[serialize_video(video, storage) for video in videos],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/trending", response_model=List[VideoResponse])
async def get_trending(
    limit: int = Query(20, ge=1, le=100),
    _auth: AuthContext = Depends(require_permission(Permission.VIEW_PROFILES)),
    storage: BlobStorage = Depends(get_blob_storage),
    db: AsyncSession = Depends(get_db),
):
    videos = await discovery_service.get_trending(db, limit=limit)
    return [serialize_video(video, storage) for video in videos]


@router.get("/recommendations/profiles", response_model=List[ProfileResponse])
async def recommend_profiles(
    limit: int = Query(10, ge=1, le=100),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
):
    profiles = await discovery_service.recommend_profiles(db, profile, limit=limit)
    return [serialize_profile(item) for item in profiles]


@router.get("/recommendations/videos", response_model=List[VideoResponse])
async def recommend_videos(
    limit: int = Query(10, ge=1, le=100),
    profile: Profile = Depends(get_current_profile),
    storage: BlobStorage = Depends(get_blob_storage),
    db: AsyncSession = Depends(get_db),
):
    videos = await discovery_service.recommend_videos(db, profile, limit=limit)
    return [serialize_video(video, storage) for video in videos]
