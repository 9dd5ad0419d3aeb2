import uuid
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel

from .common import ExpiryInfo


class HRDocumentCreate(BaseModel):
    user_id: uuid.UUID
    document_type: str
    document_number: str
    # Kept verbatim; unreadable values surface as "Invalid Date" on read
    expiry_date: Optional[str] = None
    insurance_provider: Optional[str] = None
    file_id: Optional[uuid.UUID] = None
    file_name: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None


class HRDocumentUpdate(BaseModel):
    user_id: Optional[uuid.UUID] = None
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    expiry_date: Optional[str] = None
    insurance_provider: Optional[str] = None
    file_id: Optional[uuid.UUID] = None
    file_name: Optional[str] = None
    notes: Optional[str] = None


class HRDocumentResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    document_type: str
    document_number: str
    expiry_date: Optional[str] = None
    insurance_provider: Optional[str] = None
    file_id: Optional[uuid.UUID] = None
    file_name: Optional[str] = None
    notes: Optional[str] = None
    created_by: uuid.UUID
    created_at: Optional[datetime] = None
    staff_name: str
    staff_email: Optional[str] = None
    file_url: Optional[str] = None
    expiry: ExpiryInfo

    class Config:
        from_attributes = True


class HRDocumentStats(BaseModel):
    total: int
    expired: int
    expiring_soon: int
    valid: int
    invalid: int
    by_type: Dict[str, int]
