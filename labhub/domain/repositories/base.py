"""
Base Repository Interface.
Defines the standard contract for data access operations.
"""

from typing import TypeVar, Optional, Any, Dict, Protocol

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic CRUD operations keyed by primary id."""

    def get_by_id(self, id: str) -> Optional[T]:
        """Get a single entity by ID."""
        ...

    def create(self, obj_in: Dict[str, Any]) -> T:
        """Create a new entity."""
        ...

    def update(self, db_obj: T, obj_in: Dict[str, Any]) -> T:
        """Apply the given fields to an existing entity."""
        ...

    def delete(self, id: str) -> Optional[T]:
        """Delete an entity by ID, returning it or None if it was absent."""
        ...
