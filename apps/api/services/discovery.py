"""Search, feed and recommendations over approved public content."""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.profile import Profile
from models.video import Video, VideoStatus

MAX_PAGE_SIZE = 100


def clamp_limit(limit: int, default: int = 20) -> int:
    if limit is None:
        return default
    return max(1, min(int(limit), MAX_PAGE_SIZE))


def _discoverable():
    return (Video.status == VideoStatus.APPROVED.value, Video.visibility == "public")


async def search_profiles(
    db: AsyncSession,
    query: str = "",
    *,
    profile_type: Optional[str] = None,
    position: Optional[str] = None,
    location: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Profile], int]:
    filters = []
    if query:
        pattern = f"%{query.strip()}%"
        filters.append(or_(Profile.display_name.ilike(pattern), Profile.bio.ilike(pattern)))
    if profile_type:
        filters.append(Profile.profile_type == profile_type)
    if position:
        filters.append(Profile.position == position)
    if location:
        pattern = f"%{location.strip()}%"
        filters.append(or_(Profile.location_city.ilike(pattern), Profile.location_country.ilike(pattern)))

    total = await db.execute(select(func.count(Profile.id)).where(*filters))
    result = await db.execute(
        select(Profile)
        .where(*filters)
        .order_by(Profile.completion_score.desc(), Profile.created_at.desc())
        .limit(clamp_limit(limit))
        .offset(max(offset, 0))
    )
    return list(result.scalars().all()), int(total.scalar() or 0)


async def search_videos(db: AsyncSession, query: str = "", *, limit: int = 20, offset: int = 0) -> Tuple[List[Video], int]:
    filters = list(_discoverable())
    if query:
        pattern = f"%{query.strip()}%"
        filters.append(or_(Video.title.ilike(pattern), Video.description.ilike(pattern)))

    total = await db.execute(select(func.count(Video.id)).where(*filters))
    result = await db.execute(
        select(Video)
        .where(*filters)
        .order_by(Video.created_at.desc())
        .limit(clamp_limit(limit))
        .offset(max(offset, 0))
    )
    return list(result.scalars().all()), int(total.scalar() or 0)


async def get_feed(db: AsyncSession, *, limit: int = 20, offset: int = 0) -> Tuple[List[Video], int]:
    return await search_videos(db, "", limit=limit, offset=offset)


async def get_trending(db: AsyncSession, *, limit: int = 20) -> List[Video]:
    result = await db.execute(
        select(Video)
        .where(*_discoverable())
        .order_by(Video.view_count.desc(), Video.created_at.desc())
        .limit(clamp_limit(limit))
    )
    return list(result.scalars().all())


async def recommend_profiles(db: AsyncSession, profile: Profile, *, limit: int = 10) -> List[Profile]:
    """Profiles of the same type sharing a position or location."""
    similarity = []
    if profile.position:
        similarity.append(Profile.position == profile.position)
    if profile.location_country:
        similarity.append(Profile.location_country == profile.location_country)
    if profile.location_city:
        similarity.append(Profile.location_city == profile.location_city)

    stmt = select(Profile).where(Profile.id != profile.id, Profile.profile_type == profile.profile_type)
    if similarity:
        stmt = stmt.where(or_(*similarity))
    result = await db.execute(stmt.order_by(Profile.completion_score.desc(), Profile.created_at.desc()).limit(clamp_limit(limit, 10)))
    return list(result.scalars().all())


async def recommend_videos(db: AsyncSession, profile: Profile, *, limit: int = 10) -> List[Video]:
    """Approved videos from other profiles of the same type, most viewed first."""
    result = await db.execute(
        select(Video)
        .join(Profile, Video.profile_id == Profile.id)
        .where(
            *_discoverable(),
            Video.profile_id != profile.id,
            Profile.profile_type == profile.profile_type,
        )
        .order_by(Video.view_count.desc(), Video.created_at.desc())
        .limit(clamp_limit(limit, 10))
    )
    return list(result.scalars().all())
