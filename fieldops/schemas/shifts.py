import uuid
from datetime import date as date_type, datetime, time
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel


class ShiftStatus(str, Enum):
    scheduled = "Scheduled"
    in_progress = "In Progress"
    completed = "Completed"
    cancelled = "Cancelled"


class ShiftCreate(BaseModel):
    user_id: uuid.UUID
    site_id: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    shift_type: str  # Morning|Afternoon|Night|Rotational
    date: date_type
    start_time: time
    end_time: time
    status: ShiftStatus = ShiftStatus.scheduled
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None

    class Config:
        use_enum_values = True


class ShiftUpdate(BaseModel):
    user_id: Optional[uuid.UUID] = None
    site_id: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    shift_type: Optional[str] = None
    date: Optional[date_type] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    status: Optional[ShiftStatus] = None
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class ShiftResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    site_id: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    shift_type: str
    date: date_type
    start_time: time
    end_time: time
    status: str
    notes: Optional[str] = None
    created_by: uuid.UUID
    created_at: Optional[datetime] = None
    user_name: str
    user_role: str
    project_name: Optional[str] = None

    class Config:
        from_attributes = True


class ShiftStats(BaseModel):
    total: int
    scheduled: int
    in_progress: int
    completed: int
    cancelled: int
    by_shift_type: Dict[str, int]
