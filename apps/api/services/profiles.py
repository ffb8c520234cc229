"""Profile creation, lookup and updates."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Dict, Optional
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.profile import Profile
from models.user import User
from services.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError

logger = logging.getLogger(__name__)

PROFILE_TYPES = ("player", "scout", "academy")
POSITIONS = ("goalkeeper", "defender", "midfielder", "forward")
PREFERRED_FEET = ("left", "right", "both")
UPDATABLE_FIELDS = (
    "display_name",
    "bio",
    "avatar_url",
    "location_country",
    "location_city",
    "position",
    "preferred_foot",
    "height_cm",
    "weight_kg",
    "current_team",
)


def calculate_completion_score(profile: Profile) -> int:
    """Score 0-100: 60 points for basic fields, 40 for player details."""
    score = 0
    if profile.display_name:
        score += 10
    if profile.bio:
        score += 15
    if profile.avatar_url:
        score += 15
    if profile.location_country:
        score += 10
    if profile.location_city:
        score += 10
    if profile.profile_type == "player" and profile.position:
        score += 40
    return min(score, 100)


def _validate_fields(fields: Dict[str, Any]) -> None:
    position = fields.get("position")
    if position is not None and position not in POSITIONS:
        raise ValidationFailedError(f"position must be one of: {', '.join(POSITIONS)}")
    foot = fields.get("preferred_foot")
    if foot is not None and foot not in PREFERRED_FEET:
        raise ValidationFailedError(f"preferred_foot must be one of: {', '.join(PREFERRED_FEET)}")


async def get_profile(db: AsyncSession, profile_id: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


async def get_profile_by_user(db: AsyncSession, user_id: str) -> Optional[Profile]:
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def create_profile(db: AsyncSession, user: User, fields: Dict[str, Any]) -> Profile:
    if await get_profile_by_user(db, user.id):
        raise ConflictError("Profile already exists")
    profile_type = user.role if user.role in PROFILE_TYPES else "player"
    _validate_fields(fields)

    profile = Profile(
        id=str(uuid.uuid4()),
        user_id=user.id,
        profile_type=profile_type,
        trust_level="newcomer",
        **{key: value for key, value in fields.items() if key in UPDATABLE_FIELDS},
    )
    profile.completion_score = calculate_completion_score(profile)
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    logger.info("profile_created user=%s profile=%s type=%s", user.id, profile.id, profile_type)
    return profile


async def update_profile(db: AsyncSession, profile_id: str, user_id: str, fields: Dict[str, Any]) -> Profile:
    profile = await get_profile(db, profile_id)
    if profile.user_id != user_id:
        raise PermissionDeniedError("Profile belongs to another user")
    _validate_fields(fields)

    for key, value in fields.items():
        if key in UPDATABLE_FIELDS and value is not None:
            setattr(profile, key, value)
    profile.completion_score = calculate_completion_score(profile)
    profile.updated_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(profile)
    return profile
