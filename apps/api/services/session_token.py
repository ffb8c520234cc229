"""Access and refresh token helpers."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from jose import JWTError, jwt

from config import settings


ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(claims: Dict[str, Any]) -> str:
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    user_id: str,
    role: str,
    permissions: Iterable[str] = (),
    trust_level: str = "newcomer",
    expires_minutes: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a signed access token carrying role and permission claims."""
    now = datetime.now(timezone.utc)
    ttl_minutes = int(expires_minutes or settings.JWT_ACCESS_TOKEN_MINUTES or 15)
    expires_at = now + timedelta(minutes=max(ttl_minutes, 1))
    claims: Dict[str, Any] = {
        "sub": user_id,
        "type": ACCESS_TOKEN_TYPE,
        "role": role,
        "trust_level": trust_level,
        "permissions": sorted(str(getattr(item, "value", item)) for item in permissions),
        "iss": settings.JWT_ISSUER,
        "iat": int(now.timestamp()),
        "nbf": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return {
        "token": _encode(claims),
        "expires_at": int(expires_at.timestamp()),
    }


def create_refresh_token(user_id: str, expires_days: Optional[int] = None) -> Dict[str, Any]:
    """Create a signed refresh token; it carries no permissions."""
    now = datetime.now(timezone.utc)
    ttl_days = int(expires_days or settings.JWT_REFRESH_TOKEN_DAYS or 7)
    expires_at = now + timedelta(days=max(ttl_days, 1))
    claims: Dict[str, Any] = {
        "sub": user_id,
        "type": REFRESH_TOKEN_TYPE,
        "iss": settings.JWT_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return {
        "token": _encode(claims),
        "expires_at": int(expires_at.timestamp()),
    }


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> Dict[str, Any]:
    """Decode and validate a signed token of the expected type."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
        )
    except JWTError as exc:
        raise ValueError("Invalid or expired token.") from exc

    token_type = str(payload.get("type", "")).strip()
    if token_type != expected_type:
        raise ValueError("Invalid token type.")

    subject = str(payload.get("sub", "")).strip()
    if not subject:
        raise ValueError("Token missing subject.")

    return payload
