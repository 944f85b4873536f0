"""
Lab Repository Interface.
Defines specific data access operations for Labs.
"""

from typing import List, Optional

from labhub.domain.repositories.base import BaseRepository
from labhub.domain.models.lab import Lab


class LabRepository(BaseRepository[Lab]):
    """Interface for Lab-specific operations."""

    def get_by_title(self, title: str) -> Optional[Lab]:
        """Get the lab holding a title, if any."""
        ...

    def list_labs(self, published_only: bool = True) -> List[Lab]:
        """List labs newest first, optionally restricted to published ones."""
        ...
