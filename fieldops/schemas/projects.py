import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ProjectStatus(str, Enum):
    planning = "Planning"
    active = "Active"
    on_hold = "On Hold"
    completed = "Completed"


class ProjectCreate(BaseModel):
    name: str
    code: str
    location: Optional[str] = None
    client_name: Optional[str] = None
    status: ProjectStatus = ProjectStatus.planning
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    class Config:
        use_enum_values = True


class ProjectResponse(BaseModel):
    id: uuid.UUID
    name: str
    code: str
    location: Optional[str] = None
    client_name: Optional[str] = None
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_by: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
