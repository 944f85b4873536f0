"""
API Dependencies: repositories and services wired per request.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from labhub.application.services.lab_service import LabService
from labhub.application.services.profile_service import ProfileService
from labhub.domain.models.lab import Lab
from labhub.domain.models.profile import Profile
from labhub.domain.models.user import User
from labhub.domain.repositories.lab_repository import LabRepository
from labhub.domain.storage import StorageGateway
from labhub.infrastructure.database import get_db
from labhub.infrastructure.repositories.lab_repository import SQLAlchemyLabRepository
from labhub.infrastructure.repositories.profile_repository import (
    SQLAlchemyProfileRepository,
    SQLAlchemyUserRepository,
)
from labhub.infrastructure.storage import get_storage_gateway


def get_lab_repository(db: Session = Depends(get_db)) -> LabRepository:
    """Get lab repository instance."""
    return SQLAlchemyLabRepository(db, Lab)


def get_lab_service(
    repo: LabRepository = Depends(get_lab_repository),
    storage: StorageGateway = Depends(get_storage_gateway),
) -> LabService:
    return LabService(repo, storage)


def get_profile_service(
    db: Session = Depends(get_db),
    storage: StorageGateway = Depends(get_storage_gateway),
) -> ProfileService:
    return ProfileService(
        SQLAlchemyProfileRepository(db, Profile),
        SQLAlchemyUserRepository(db, User),
        storage,
    )
