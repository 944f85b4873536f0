"""
SQLAlchemy Implementations of Profile and User Repositories.
"""

from typing import Optional

from labhub.domain.models.profile import Profile
from labhub.domain.models.user import User
from labhub.domain.repositories.profile_repository import ProfileRepository, UserRepository
from labhub.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyProfileRepository(SQLAlchemyRepository[Profile], ProfileRepository):
    """Profile repository implementation using SQLAlchemy."""

    def get_by_user_id(self, user_id: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.user_id == user_id).first()


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""
