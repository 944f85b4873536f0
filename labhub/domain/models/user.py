"""User domain model: maps to the 'users' table."""

import enum
import uuid

from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from labhub.infrastructure.database import Base


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(200), nullable=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    image = Column(String(1024), nullable=True)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.USER)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    labs = relationship("Lab", back_populates="author")
    profile = relationship("Profile", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User {self.email}>"
