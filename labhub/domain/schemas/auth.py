"""Pydantic schemas for User and caller identity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from labhub.domain.models.user import UserRole


@dataclass(frozen=True)
class Caller:
    """Verified identity of the user behind a request."""

    id: str
    role: UserRole
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserRead(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    image: Optional[str] = None
    role: UserRole
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SignInRequest(BaseModel):
    email: str
    name: Optional[str] = None
    image: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
