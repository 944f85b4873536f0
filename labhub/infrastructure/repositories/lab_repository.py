"""
SQLAlchemy Implementation of Lab Repository.
"""

from typing import List, Optional

from sqlalchemy.orm import joinedload

from labhub.domain.models.lab import Lab
from labhub.domain.repositories.lab_repository import LabRepository
from labhub.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyLabRepository(SQLAlchemyRepository[Lab], LabRepository):
    """Lab repository implementation using SQLAlchemy."""

    def get_by_title(self, title: str) -> Optional[Lab]:
        return self.db.query(Lab).filter(Lab.title == title).first()

    def list_labs(self, published_only: bool = True) -> List[Lab]:
        query = self.db.query(Lab).options(joinedload(Lab.author))
        if published_only:
            query = query.filter(Lab.published.is_(True))
        return query.order_by(Lab.created_at.desc()).all()
