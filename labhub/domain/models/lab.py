"""Lab domain model: maps to the 'labs' table."""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from labhub.infrastructure.database import Base


class Difficulty(str, enum.Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class Lab(Base):
    __tablename__ = "labs"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    title = Column(String(300), unique=True, nullable=False)
    difficulty = Column(Enum(Difficulty, name="difficulty"), nullable=False, default=Difficulty.BEGINNER)
    duration = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    audience = Column(Text, nullable=False)
    prerequisites = Column(Text, nullable=False)

    # JSON columns hold native lists/dicts, never pre-encoded strings
    objectives = Column(JSON, nullable=False, default=list)
    covered_topics = Column(JSON, nullable=False, default=list)
    steps = Column(JSON, nullable=False, default=dict)

    environment_image_before = Column(String(1024), nullable=True)
    environment_image_after = Column(String(1024), nullable=True)

    published = Column(Boolean, nullable=False, default=False, index=True)
    author_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    author = relationship("User", back_populates="labs")

    def image_urls(self) -> list[str]:
        return [u for u in (self.environment_image_before, self.environment_image_after) if u]

    def __repr__(self):
        return f"<Lab {self.id} - {self.title}>"
