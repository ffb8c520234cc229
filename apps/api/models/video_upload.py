"""Upload session model tracking transfer progress for a video."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base


class VideoUpload(Base):
    """One direct-to-blob upload attempt."""

    __tablename__ = "video_uploads"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    video_id = Column(String, ForeignKey("videos.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default="initiated")  # initiated, in_progress, processing, completed, failed
    progress = Column(Integer, nullable=False, default=0)
    error_message = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    video = relationship("Video", back_populates="uploads")
