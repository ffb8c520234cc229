"""Routers package."""

from . import (
    health,
    auth,
    profiles,
    media,
    discovery,
)
