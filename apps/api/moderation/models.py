"""Moderation pipeline types: verdicts, bus events and the record view."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import enum
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from models.video import VideoStatus


MODERATION_FAILED_REASON = "Moderation failed"


class AnalysisError(RuntimeError):
    """Raised when the analyzer itself fails, as opposed to disapproving content."""


class EventDecodeError(ValueError):
    """Raised when a bus payload is not a well-formed upload event."""


class RecordNotFoundError(LookupError):
    """Raised when a status write targets a video that no longer exists."""


class ModerationOutcome(str, enum.Enum):
    DROPPED = "dropped"
    APPROVED = "approved"
    REJECTED = "rejected"
    FAILED = "failed"


class ModerationVerdict(BaseModel):
    """Immutable output of one analysis pass."""

    model_config = ConfigDict(frozen=True)

    approved: bool
    confidence: float = Field(ge=0.0, le=1.0)
    flags: Tuple[str, ...] = ()
    reason: str
    suggested_tags: Tuple[str, ...] = ()
    content_summary: str = ""

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class UploadCompletedEvent(BaseModel):
    """Message published on the bus when a video upload completes."""

    model_config = ConfigDict(extra="ignore")

    event_type: str
    video_id: str
    profile_id: str
    title: str
    timestamp: int

    @classmethod
    def decode(cls, raw: Union[bytes, str]) -> "UploadCompletedEvent":
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise EventDecodeError(f"Malformed upload event: {exc.error_count()} error(s)") from exc


@dataclass(frozen=True)
class MediaRecord:
    id: str
    profile_id: str
    title: str
    description: str
    status: VideoStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
