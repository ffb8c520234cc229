"""Moderation verdict audit rows."""

from sqlalchemy import Boolean, Column, String, DateTime, Float, ForeignKey, JSON, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base


class ModerationResult(Base):
    """Insert-only record of one analysis pass over a video."""

    __tablename__ = "moderation_results"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    video_id = Column(String, ForeignKey("videos.id"), nullable=False, index=True)
    approved = Column(Boolean, nullable=False)
    confidence = Column(Float, nullable=False)
    flags = Column(JSON, nullable=False, default=list)
    reason = Column(String, nullable=False)
    suggested_tags = Column(JSON, nullable=False, default=list)
    content_summary = Column(Text, nullable=False, default="")
    result_data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    video = relationship("Video", back_populates="moderation_results")
