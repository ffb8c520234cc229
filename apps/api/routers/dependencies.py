"""Shared request dependencies: current profile, event bus and blob storage."""

from typing import Any, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.profile import Profile
from routers.auth_scope import AuthContext, get_auth_context
from services.blob_storage import BlobStorage
from services.profiles import get_profile_by_user


async def get_current_profile(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    profile = await get_profile_by_user(db, auth.user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Create a profile first")
    return profile


def get_event_bus(request: Request) -> Optional[Any]:
    return getattr(request.app.state, "event_bus", None)


def get_blob_storage() -> BlobStorage:
    return BlobStorage.from_settings()
