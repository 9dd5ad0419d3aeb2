import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, model_validator


class FiberTeamStatus(str, Enum):
    available = "Available"
    assigned = "Assigned"
    on_leave = "On Leave"
    inactive = "Inactive"


class TeamAssignment(BaseModel):
    project_id: Optional[uuid.UUID] = None
    location: Optional[str] = None
    task_description: Optional[str] = None
    assignment_date: Optional[date] = None
    expected_completion_date: Optional[date] = None


class FiberTeamCreate(BaseModel):
    team_name: str
    team_lead: str
    members: List[str] = []
    status: FiberTeamStatus = FiberTeamStatus.available
    current_assignment: Optional[TeamAssignment] = None
    created_by: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def assignment_matches_status(self):
        if self.status == FiberTeamStatus.assigned.value and self.current_assignment is None:
            raise ValueError("an Assigned team needs current_assignment")
        return self

    class Config:
        use_enum_values = True


class FiberTeamUpdate(BaseModel):
    team_name: Optional[str] = None
    team_lead: Optional[str] = None
    members: Optional[List[str]] = None
    status: Optional[FiberTeamStatus] = None

    class Config:
        use_enum_values = True


class FiberTeamResponse(BaseModel):
    id: uuid.UUID
    team_name: str
    team_lead: str
    members: List[str] = []
    status: str
    current_assignment: Optional[Dict[str, Any]] = None
    created_by: uuid.UUID
    created_at: Optional[datetime] = None
    project_name: Optional[str] = None
    creator_name: str

    class Config:
        from_attributes = True


class FiberTeamStats(BaseModel):
    total_teams: int
    by_status: Dict[str, int]
    total_members: int
    available_teams: int
    assigned_teams: int
