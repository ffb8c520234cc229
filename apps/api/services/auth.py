"""Account registration, login and token refresh."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Dict, Optional, Tuple
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.profile import Profile
from models.user import User
from services.errors import AuthenticationError, ConflictError, PermissionDeniedError, ValidationFailedError
from services.passwords import hash_password, verify_password
from services.permissions import SELF_REGISTRABLE_ROLES, permissions_for_role
from services.session_token import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def issue_tokens(user: User, trust_level: str = "newcomer") -> Dict[str, Any]:
    access = create_access_token(
        user.id,
        role=user.role,
        permissions=permissions_for_role(user.role),
        trust_level=trust_level,
    )
    refresh = create_refresh_token(user.id)
    return {
        "access_token": access["token"],
        "access_token_expires_at": access["expires_at"],
        "refresh_token": refresh["token"],
        "refresh_token_expires_at": refresh["expires_at"],
        "token_type": "bearer",
    }


async def _trust_level(db: AsyncSession, user_id: str) -> str:
    result = await db.execute(select(Profile.trust_level).where(Profile.user_id == user_id))
    return result.scalar_one_or_none() or "newcomer"


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, email: str, password: str, role: str) -> User:
    email = normalize_email(email)
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationFailedError("A valid email address is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if role not in {item.value for item in SELF_REGISTRABLE_ROLES}:
        raise ValidationFailedError("role must be one of: player, scout, academy")

    if await get_user_by_email(db, email):
        raise ConflictError("User already exists")

    user = User(
        id=str(uuid.uuid4()),
        email=email,
        password_hash=hash_password(password),
        role=role,
        status="active",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("user_registered user=%s role=%s", user.id, role)
    return user


async def login(db: AsyncSession, email: str, password: str) -> Tuple[Dict[str, Any], User]:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password or "", user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)
    if user.status != "active":
        raise PermissionDeniedError(f"Account is {user.status}")

    tokens = issue_tokens(user, trust_level=await _trust_level(db, user.id))
    try:
        user.last_login_at = datetime.now(timezone.utc)
        await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.warning("Failed to update last login for user %s: %s", user.id, exc)
    return tokens, user


async def refresh(db: AsyncSession, refresh_token: str) -> Dict[str, Any]:
    try:
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
    except ValueError as exc:
        raise AuthenticationError(str(exc)) from exc

    result = await db.execute(select(User).where(User.id == str(payload["sub"])))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError(INVALID_CREDENTIALS)
    if user.status != "active":
        raise PermissionDeniedError(f"Account is {user.status}")
    return issue_tokens(user, trust_level=await _trust_level(db, user.id))
