"""FastAPI dependencies: resolve the caller from the bearer token."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from labhub.application.services.auth_service import caller_from_token
from labhub.core.exceptions import UnauthenticatedError
from labhub.domain.schemas.auth import Caller
from labhub.infrastructure.database import get_db

security = HTTPBearer(auto_error=False)


def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[Caller]:
    """The caller behind the request, or None for anonymous/invalid tokens.

    Services receive this explicitly and decide through the access policy.
    """
    if credentials is None:
        return None
    return caller_from_token(db, credentials.credentials)


def get_current_caller(caller: Optional[Caller] = Depends(get_optional_caller)) -> Caller:
    if caller is None:
        raise UnauthenticatedError("Invalid or expired token")
    return caller
