"""Profile domain model: maps to the 'profiles' table (one per user)."""

import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from labhub.infrastructure.database import Base

PROFILE_TEXT_FIELDS = ("bio", "role", "company", "location", "github", "twitter", "linkedin")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    bio = Column(Text, nullable=True)
    role = Column(String(200), nullable=True)
    company = Column(String(200), nullable=True)
    location = Column(String(200), nullable=True)
    github = Column(String(500), nullable=True)
    twitter = Column(String(500), nullable=True)
    linkedin = Column(String(500), nullable=True)
    image = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<Profile {self.user_id}>"
