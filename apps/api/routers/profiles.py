"""Profile router."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import get_db
from models.profile import Profile
from models.user import User
from routers.auth_scope import AuthContext, get_auth_context, require_permission
from services import profiles as profile_service
from services.permissions import Permission

router = APIRouter()

PositionValue = Literal["goalkeeper", "defender", "midfielder", "forward"]
FootValue = Literal["left", "right", "both"]


class CreateProfileRequest(BaseModel):
    display_name: str = Field(min_length=2, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = Field(default=None, max_length=2000)
    location_country: Optional[str] = Field(default=None, max_length=100)
    location_city: Optional[str] = Field(default=None, max_length=100)
    position: Optional[PositionValue] = None
    preferred_foot: Optional[FootValue] = None
    height_cm: Optional[int] = Field(default=None, ge=100, le=250)
    weight_kg: Optional[int] = Field(default=None, ge=30, le=150)
    current_team: Optional[str] = Field(default=None, max_length=100)


class UpdateProfileRequest(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = Field(default=None, max_length=2000)
    location_country: Optional[str] = Field(default=None, max_length=100)
    location_city: Optional[str] = Field(default=None, max_length=100)
    position: Optional[PositionValue] = None
    preferred_foot: Optional[FootValue] = None
    height_cm: Optional[int] = Field(default=None, ge=100, le=250)
    weight_kg: Optional[int] = Field(default=None, ge=30, le=150)
    current_team: Optional[str] = Field(default=None, max_length=100)


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    profile_type: str
    display_name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    location_country: Optional[str] = None
    location_city: Optional[str] = None
    position: Optional[str] = None
    preferred_foot: Optional[str] = None
    height_cm: Optional[int] = None
    weight_kg: Optional[int] = None
    current_team: Optional[str] = None
    trust_level: str
    completion_score: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def serialize_profile(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        user_id=profile.user_id,
        profile_type=profile.profile_type,
        display_name=profile.display_name,
        bio=profile.bio,
        avatar_url=profile.avatar_url,
        location_country=profile.location_country,
        location_city=profile.location_city,
        position=profile.position,
        preferred_foot=profile.preferred_foot,
        height_cm=profile.height_cm,
        weight_kg=profile.weight_kg,
        current_team=profile.current_team,
        trust_level=profile.trust_level,
        completion_score=int(profile.completion_score or 0),
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


@router.post("", response_model=ProfileResponse, status_code=201)
async def create_profile(
    request: CreateProfileRequest,
    auth: AuthContext = Depends(require_permission(Permission.EDIT_PROFILE)),
    db: AsyncSession = Depends(get_db),
):
    """Create the authenticated user's profile."""
    result = await db.execute(select(User).where(User.id == auth.user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    profile = await profile_service.create_profile(db, user, request.model_dump(exclude_none=True))
    return serialize_profile(profile)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.get_profile_by_user(db, auth.user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return serialize_profile(profile)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    _auth: AuthContext = Depends(require_permission(Permission.VIEW_PROFILES)),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.get_profile(db, profile_id)
    return serialize_profile(profile)


@router.patch("/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str,
    request: UpdateProfileRequest,
    auth: AuthContext = Depends(require_permission(Permission.EDIT_PROFILE)),
    db: AsyncSession = Depends(get_db),
):
    """Update fields on a profile owned by the caller."""
    profile = await profile_service.update_profile(
        db,
        profile_id,
        auth.user_id,
        request.model_dump(exclude_none=True),
    )
    return serialize_profile(profile)
