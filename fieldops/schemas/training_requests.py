import uuid
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class TrainingRequestCreate(BaseModel):
    training_type: str
    requested_by: Optional[uuid.UUID] = None
    employee_name: str
    department: str
    training_title: str
    training_provider: Optional[str] = None
    justification: str
    preferred_dates: Optional[str] = None
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class TrainingRequestUpdate(BaseModel):
    training_type: Optional[str] = None
    employee_name: Optional[str] = None
    department: Optional[str] = None
    training_title: Optional[str] = None
    training_provider: Optional[str] = None
    justification: Optional[str] = None
    preferred_dates: Optional[str] = None
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class CompleteRequest(BaseModel):
    notes: Optional[str] = None


class TrainingRequestResponse(BaseModel):
    id: uuid.UUID
    training_type: str
    requested_by: uuid.UUID
    employee_name: str
    department: str
    training_title: str
    training_provider: Optional[str] = None
    justification: str
    preferred_dates: Optional[str] = None
    estimated_cost: Optional[float] = None
    status: str
    approved_by: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    requester_name: str
    approver_name: Optional[str] = None

    class Config:
        from_attributes = True


class TrainingRequestStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    completed: int
    by_type: Dict[str, int]
