"""Role to capability mapping, fixed at import time."""

from __future__ import annotations

import enum
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple


class Role(str, enum.Enum):
    PLAYER = "player"
    SCOUT = "scout"
    ACADEMY = "academy"
    ADMIN = "admin"


class Permission(str, enum.Enum):
    UPLOAD_VIDEO = "upload:video"
    DELETE_VIDEO = "delete:video"
    VIEW_PROFILES = "view:profiles"
    EDIT_PROFILE = "edit:profile"
    VIEW_ALL_VIDEOS = "view:all_videos"
    CONTACT_PLAYER = "contact:player"
    VIEW_ANALYTICS = "view:analytics"
    VERIFY_PROFILE = "verify:profile"


SELF_REGISTRABLE_ROLES: Tuple[Role, ...] = (Role.PLAYER, Role.SCOUT, Role.ACADEMY)

ROLE_PERMISSIONS: Mapping[Role, FrozenSet[Permission]] = MappingProxyType(
    {
        Role.PLAYER: frozenset(
            {
                Permission.UPLOAD_VIDEO,
                Permission.DELETE_VIDEO,
                Permission.VIEW_PROFILES,
                Permission.EDIT_PROFILE,
            }
        ),
        Role.SCOUT: frozenset(
            {
                Permission.VIEW_PROFILES,
                Permission.EDIT_PROFILE,
                Permission.VIEW_ALL_VIDEOS,
                Permission.CONTACT_PLAYER,
                Permission.VIEW_ANALYTICS,
            }
        ),
        Role.ACADEMY: frozenset(
            {
                Permission.UPLOAD_VIDEO,
                Permission.DELETE_VIDEO,
                Permission.VIEW_PROFILES,
                Permission.EDIT_PROFILE,
                Permission.VIEW_ALL_VIDEOS,
                Permission.CONTACT_PLAYER,
                Permission.VERIFY_PROFILE,
            }
        ),
        Role.ADMIN: frozenset(Permission),
    }
)


def permissions_for_role(role: str) -> FrozenSet[Permission]:
    """Return the capability set for a role name; unknown roles get nothing."""
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def has_permission(role: str, permission: Permission) -> bool:
    return permission in permissions_for_role(role)
