from typing import List, Optional

from fastapi import UploadFile

from offerhub.models.asset import UploadedFile


async def read_upload(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Buffer a multipart file into an :class:`UploadedFile`."""
    if file is None:
        return None
    data = await file.read()
    return UploadedFile(
        data=data,
        content_type=file.content_type or "application/octet-stream",
        filename=file.filename,
    )


async def read_uploads(files: Optional[List[UploadFile]]) -> List[UploadedFile]:
    return [await read_upload(f) for f in files or [] if f is not None]
