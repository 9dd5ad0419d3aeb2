import uuid
from datetime import date, datetime
from typing import Dict, Optional

from pydantic import BaseModel, model_validator


class LeaveRequestCreate(BaseModel):
    requested_by: Optional[uuid.UUID] = None
    employee_name: str
    request_type: str
    start_date: date
    end_date: date
    reason: str
    shift_swap_with: Optional[uuid.UUID] = None
    project_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class LeaveRequestUpdate(BaseModel):
    employee_name: Optional[str] = None
    request_type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = None
    shift_swap_with: Optional[uuid.UUID] = None
    project_id: Optional[uuid.UUID] = None


class DecisionRequest(BaseModel):
    approver_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None


class LeaveRequestResponse(BaseModel):
    id: uuid.UUID
    requested_by: uuid.UUID
    employee_name: str
    request_type: str
    start_date: date
    end_date: date
    reason: str
    shift_swap_with: Optional[uuid.UUID] = None
    status: str
    approved_by: Optional[uuid.UUID] = None
    project_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    requester_name: str
    approver_name: Optional[str] = None
    swap_with_name: Optional[str] = None
    project_name: Optional[str] = None

    class Config:
        from_attributes = True


class LeaveRequestStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    by_type: Dict[str, int]
