"""Profile model for players, scouts and academies."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from database import Base


class Profile(Base):
    """Public-facing profile owned by exactly one user."""

    __tablename__ = "profiles"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, unique=True, index=True)
    profile_type = Column(String, nullable=False, index=True)  # player, scout, academy
    display_name = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String, nullable=True)
    location_country = Column(String, nullable=True)
    location_city = Column(String, nullable=True)

    # Player details
    position = Column(String, nullable=True, index=True)  # goalkeeper, defender, midfielder, forward
    preferred_foot = Column(String, nullable=True)  # left, right, both
    height_cm = Column(Integer, nullable=True)
    weight_kg = Column(Integer, nullable=True)
    current_team = Column(String, nullable=True)

    trust_level = Column(String, nullable=False, default="newcomer")  # newcomer, established, verified, pro
    completion_score = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="profile")
    videos = relationship("Video", back_populates="profile", cascade="all, delete-orphan")
