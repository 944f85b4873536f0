"""Multipart form reading shared by the lab and profile routes."""

from typing import Dict, Tuple

from fastapi import Request
from starlette.datastructures import UploadFile

from labhub.config import get_settings
from labhub.core.exceptions import StorageError
from labhub.domain.storage import UploadedFile


def check_upload_size(value: UploadFile, max_bytes: int) -> None:
    """Reject an oversized part from its spooled size, before it is read into memory."""
    if value.size is not None and value.size > max_bytes:
        raise StorageError(
            f"File size exceeds the limit of {max_bytes // (1024 * 1024)}MB",
            {"file": value.filename, "size": value.size},
            status_code=413,
        )


async def read_multipart(request: Request) -> Tuple[Dict[str, str], Dict[str, UploadedFile]]:
    """Split a submitted form into text fields and fully-read files.

    File inputs left empty by the browser (no filename) are dropped.
    """
    max_bytes = get_settings().MAX_UPLOAD_BYTES
    form = await request.form()
    fields: Dict[str, str] = {}
    files: Dict[str, UploadedFile] = {}
    for name, value in form.multi_items():
        if isinstance(value, UploadFile):
            if not value.filename:
                continue
            check_upload_size(value, max_bytes)
            files[name] = UploadedFile(
                name=value.filename,
                content_type=value.content_type or "application/octet-stream",
                data=await value.read(),
            )
        else:
            fields[name] = value
    return fields, files
