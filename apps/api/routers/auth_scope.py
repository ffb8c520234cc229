"""Authentication dependencies for API user scoping."""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.permissions import Permission
from services.session_token import ACCESS_TOKEN_TYPE, decode_token


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user_id: str
    role: str = "player"
    trust_level: str = "newcomer"
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def can(self, permission: Permission) -> bool:
        return permission.value in self.permissions


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> AuthContext:
    """Resolve authenticated user from a Bearer access token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Bearer access token.")

    try:
        payload = decode_token(credentials.credentials, expected_type=ACCESS_TOKEN_TYPE)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return AuthContext(
        user_id=str(payload.get("sub", "")),
        role=str(payload.get("role", "")),
        trust_level=str(payload.get("trust_level", "newcomer")),
        permissions=frozenset(str(item) for item in payload.get("permissions") or []),
    )


def require_permission(permission: Permission) -> Callable[..., AuthContext]:
    """Return a dependency that rejects callers lacking ``permission``."""

    async def _dependency(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not auth.can(permission):
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission.value}")
        return auth

    return _dependency
