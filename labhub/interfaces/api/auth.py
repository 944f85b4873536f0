"""Auth API routes: sign-in callback and current user."""

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from labhub.application.services.auth_service import create_access_token, register_sign_in
from labhub.config import get_settings
from labhub.core.exceptions import UnauthenticatedError
from labhub.domain.models.user import User
from labhub.domain.schemas.auth import Caller, SignInRequest, TokenResponse, UserRead
from labhub.infrastructure.database import get_db
from labhub.interfaces.api.deps import get_current_caller

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/sign-in", response_model=TokenResponse)
def sign_in(
    body: SignInRequest,
    x_auth_callback_secret: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    """Called by the OAuth front end once the provider has verified the email."""
    expected = get_settings().AUTH_CALLBACK_SECRET
    if not expected or not x_auth_callback_secret or not secrets.compare_digest(
        x_auth_callback_secret, expected
    ):
        raise UnauthenticatedError("Invalid sign-in callback secret")

    user = register_sign_in(db, body.email, name=body.name, image=body.image)
    return TokenResponse(
        access_token=create_access_token(user),
        user=UserRead.model_validate(user),
    )


@router.get("/me", response_model=UserRead)
def get_me(caller: Caller = Depends(get_current_caller), db: Session = Depends(get_db)):
    user = db.get(User, caller.id)
    if user is None:
        raise UnauthenticatedError("User not found")
    return UserRead.model_validate(user)
