from dataclasses import dataclass
from typing import Optional
from pydantic import BaseModel


class AssetDescriptor(BaseModel):
    """Location of one object in the asset store.

    ``public_id`` is the object path inside the bucket and doubles as its
    identifier; ``folder`` is its containing folder.
    """
    public_id: str
    folder: str
    url: str
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None


@dataclass
class UploadedFile:
    """Raw file received from a client, not yet stored anywhere."""
    data: bytes
    content_type: str = "application/octet-stream"
    filename: Optional[str] = None
