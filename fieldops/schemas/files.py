import uuid
from pydantic import BaseModel
from typing import Optional


class UploadRequest(BaseModel):
    original_name: str
    content_type: str = "application/octet-stream"
    project_id: Optional[str] = None
    category: Optional[str] = None


class UploadResponse(BaseModel):
    key: str
    upload_url: str
    expires_in: int


class ConfirmRequest(BaseModel):
    key: str
    original_name: Optional[str] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    checksum_sha256: Optional[str] = None


class FileUrlResponse(BaseModel):
    id: uuid.UUID
    url: Optional[str] = None
