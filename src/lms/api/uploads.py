"""
Multipart upload helpers
"""
from typing import List, Optional

from fastapi import UploadFile

from lms.errors import BadRequestError
from lms.services.submissions import UploadedFile


async def read_upload(file: Optional[UploadFile], max_bytes: Optional[int] = None) -> Optional[UploadedFile]:
    """
    Read an UploadFile into memory; empty form fields come back as None

    When the multipart parser reports a size, files over max_bytes are
    rejected before their content is read.
    """
    if file is None or not file.filename:
        return None
    if max_bytes is not None and file.size is not None and file.size > max_bytes:
        raise BadRequestError(f"{file.filename} exceeds the {max_bytes // (1024 * 1024)} MB limit")
    data = await file.read()
    return UploadedFile(
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
        data=data,
    )


async def read_uploads(files: Optional[List[UploadFile]], max_bytes: Optional[int] = None) -> List[UploadedFile]:
    uploads = []
    for file in files or []:
        upload = await read_upload(file, max_bytes)
        if upload is not None:
            uploads.append(upload)
    return uploads
