"""Profile API routes: the caller's own profile and profiles by user id."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from labhub.application.services.profile_service import ProfileService
from labhub.domain.schemas.auth import Caller
from labhub.domain.schemas.lab import MessageResponse
from labhub.domain.schemas.profile import ProfileRead
from labhub.interfaces.api.deps import get_optional_caller
from labhub.interfaces.api.forms import read_multipart
from labhub.interfaces.deps import get_profile_service

router = APIRouter(prefix="/api/profile", tags=["Profile"])


@router.get("", response_model=ProfileRead)
def get_own_profile(
    service: ProfileService = Depends(get_profile_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    return service.get_own(caller)


@router.post("", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
async def create_profile(
    request: Request,
    service: ProfileService = Depends(get_profile_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    fields, files = await read_multipart(request)
    return await run_in_threadpool(service.create, caller, fields, files.get("image"))


@router.get("/{user_id}", response_model=ProfileRead)
def get_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    return service.get(caller, user_id)


@router.put("/{user_id}", response_model=ProfileRead)
async def update_profile(
    user_id: str,
    request: Request,
    service: ProfileService = Depends(get_profile_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    fields, files = await read_multipart(request)
    return await run_in_threadpool(service.update, caller, user_id, fields, files.get("image"))


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    service.delete(caller, user_id)
    return MessageResponse(message="Profile deleted successfully")
