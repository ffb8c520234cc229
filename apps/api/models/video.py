"""Video model for uploaded media records."""

import enum

from sqlalchemy import BigInteger, Column, String, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base


class VideoStatus(str, enum.Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    UPLOADED = "uploaded"
    # Held in memory by the moderation worker only; never written.
    ANALYZING = "analyzing"
    APPROVED = "approved"
    REJECTED = "rejected"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_VIDEO_STATUSES


TERMINAL_VIDEO_STATUSES = frozenset({VideoStatus.APPROVED, VideoStatus.REJECTED, VideoStatus.FAILED})


class Video(Base):
    """Uploaded video owned by a profile."""

    __tablename__ = "videos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    profile_id = Column(String, ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    file_name = Column(String, nullable=False)
    file_size = Column(BigInteger, nullable=False)
    mime_type = Column(String, nullable=False)
    blob_name = Column(String, nullable=False)
    status = Column(String, nullable=False, default=VideoStatus.UPLOADING.value, index=True)
    moderation_reason = Column(String, nullable=True)
    visibility = Column(String, nullable=False, default="public")  # public, private
    view_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    profile = relationship("Profile", back_populates="videos")
    uploads = relationship("VideoUpload", back_populates="video", cascade="all, delete-orphan")
    moderation_results = relationship("ModerationResult", back_populates="video", cascade="all, delete-orphan")
