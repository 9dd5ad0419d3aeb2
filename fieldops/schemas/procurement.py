import uuid
from datetime import date as date_type, datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ProcurementStatus(str, Enum):
    pending = "Pending"
    approved = "Approved"
    ordered = "Ordered"
    delivered = "Delivered"
    paid = "Paid"
    cancelled = "Cancelled"


class ProcurementLogCreate(BaseModel):
    log_type: str
    document_id: str
    supplier: str
    date: date_type
    amount: Optional[float] = Field(default=None, ge=0)
    status: ProcurementStatus = ProcurementStatus.pending
    related_project_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None

    class Config:
        use_enum_values = True


class ProcurementLogUpdate(BaseModel):
    log_type: Optional[str] = None
    document_id: Optional[str] = None
    supplier: Optional[str] = None
    date: Optional[date_type] = None
    amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[ProcurementStatus] = None
    related_project_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class StatusChange(BaseModel):
    status: ProcurementStatus

    class Config:
        use_enum_values = True


class ProcurementLogResponse(BaseModel):
    id: uuid.UUID
    log_type: str
    document_id: str
    supplier: str
    date: date_type
    amount: Optional[float] = None
    status: str
    related_project_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_by: uuid.UUID
    created_at: Optional[datetime] = None
    project_name: Optional[str] = None
    creator_name: str

    class Config:
        from_attributes = True


class ProcurementStats(BaseModel):
    total_logs: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    total_amount: float
    pending_amount: float
