"""
Authentication router: registration, login, token refresh and current user.
"""

from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import get_db
from models.user import User
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services import auth as auth_service

router = APIRouter()


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=8, max_length=256)
    role: Literal["player", "scout", "academy"]


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    user_id: str
    email: str
    role: str
    status: str
    email_verified: bool = False
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    access_token: str
    access_token_expires_at: int
    refresh_token: str
    refresh_token_expires_at: int
    token_type: str = "bearer"


class LoginResponse(TokenResponse):
    user: UserResponse


class CurrentUserResponse(UserResponse):
    permissions: List[str] = []
    trust_level: str = "newcomer"


def _serialize_user(user: User) -> UserResponse:
    return UserResponse(
        user_id=user.id,
        email=user.email,
        role=user.role,
        status=user.status,
        email_verified=bool(user.email_verified),
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    )


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    request: RegisterRequest,
    _rate_limit: None = Depends(rate_limit("auth_register", limit=20, window_seconds=3600)),
    db: AsyncSession = Depends(get_db),
):
    """Create a new account."""
    user = await auth_service.register_user(db, request.email, request.password, request.role)
    return _serialize_user(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    _rate_limit: None = Depends(rate_limit("auth_login", limit=30, window_seconds=900)),
    db: AsyncSession = Depends(get_db),
):
    """Exchange credentials for an access/refresh token pair."""
    tokens, user = await auth_service.login(db, request.email, request.password)
    return LoginResponse(**tokens, user=_serialize_user(user))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(request: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Issue a fresh token pair from a valid refresh token."""
    tokens = await auth_service.refresh(db, request.refresh_token)
    return TokenResponse(**tokens)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Get the authenticated user with the capabilities carried by the token."""
    result = await db.execute(select(User).where(User.id == auth.user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return CurrentUserResponse(
        **_serialize_user(user).model_dump(),
        permissions=sorted(auth.permissions),
        trust_level=auth.trust_level,
    )


@router.post("/logout")
async def logout(_auth: AuthContext = Depends(get_auth_context)):
    """Client-managed logout acknowledgment endpoint."""
    return {"message": "Logged out successfully"}
