"""
Profile and User Repository Interfaces.
"""

from typing import Optional

from labhub.domain.repositories.base import BaseRepository
from labhub.domain.models.profile import Profile
from labhub.domain.models.user import User


class ProfileRepository(BaseRepository[Profile]):
    """Interface for Profile-specific operations."""

    def get_by_user_id(self, user_id: str) -> Optional[Profile]:
        """Get the profile of a user."""
        ...


class UserRepository(BaseRepository[User]):
    """Users are only read and updated by id here; sign-in lookups live in the auth service."""
