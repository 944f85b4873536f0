"""Labs API routes: list, read, create, update, delete."""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from labhub.application.services.lab_service import LabService
from labhub.domain.schemas.auth import Caller
from labhub.domain.schemas.lab import LabCreated, LabRead, MessageResponse
from labhub.interfaces.api.deps import get_optional_caller
from labhub.interfaces.api.forms import read_multipart
from labhub.interfaces.deps import get_lab_service

router = APIRouter(prefix="/api/labs", tags=["Labs"])


@router.get("", response_model=List[LabRead])
def list_labs(
    scope: Optional[Literal["published", "all"]] = None,
    service: LabService = Depends(get_lab_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    """Published labs for everyone; admins see drafts too unless scope=published."""
    if scope is None:
        published_only = not (caller is not None and caller.is_admin)
    else:
        published_only = scope == "published"
    return service.list(caller, published_only=published_only)


@router.get("/{lab_id}", response_model=LabRead)
def get_lab(
    lab_id: str,
    service: LabService = Depends(get_lab_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    return service.get(caller, lab_id)


@router.post("", response_model=LabCreated, status_code=status.HTTP_201_CREATED)
async def create_lab(
    request: Request,
    service: LabService = Depends(get_lab_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    fields, files = await read_multipart(request)
    lab = await run_in_threadpool(service.create, caller, fields, files)
    return LabCreated(data=lab)


@router.put("/{lab_id}", response_model=LabRead)
async def update_lab(
    lab_id: str,
    request: Request,
    service: LabService = Depends(get_lab_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    fields, files = await read_multipart(request)
    return await run_in_threadpool(service.update, caller, lab_id, fields, files)


@router.delete("/{lab_id}", response_model=MessageResponse)
def delete_lab(
    lab_id: str,
    service: LabService = Depends(get_lab_service),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    service.delete(caller, lab_id)
    return MessageResponse(message="Lab deleted successfully")
