import uuid
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel


class ProjectDocumentCreate(BaseModel):
    project_id: uuid.UUID
    document_type: str
    title: str
    description: Optional[str] = None
    file_id: uuid.UUID
    file_name: str
    uploaded_by: Optional[uuid.UUID] = None


class ProjectDocumentUpdate(BaseModel):
    project_id: Optional[uuid.UUID] = None
    document_type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


class ProjectDocumentResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    document_type: str
    title: str
    description: Optional[str] = None
    file_id: uuid.UUID
    file_name: str
    uploaded_by: uuid.UUID
    created_at: Optional[datetime] = None
    uploader_name: str
    project_name: str
    file_url: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectDocumentStats(BaseModel):
    total: int
    by_type: Dict[str, int]
    by_project: Dict[str, int]
