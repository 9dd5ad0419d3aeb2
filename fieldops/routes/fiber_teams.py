import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.fiber_teams import (
    FiberTeamCreate,
    FiberTeamResponse,
    FiberTeamStats,
    FiberTeamUpdate,
    TeamAssignment,
)
from ..services import fiber_teams as team_service


router = APIRouter(prefix="/fiber-teams", tags=["fiber-teams"])


@router.post("", response_model=IdResponse, status_code=201)
def create_team(payload: FiberTeamCreate, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": team_service.create_fiber_team(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[FiberTeamResponse])
def list_teams(
    status: Optional[str] = None,
    team_lead: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return team_service.list_fiber_teams(db, status=status, team_lead=team_lead)


@router.get("/stats", response_model=FiberTeamStats)
def team_stats(db: Session = Depends(get_db), _=Depends(get_current_user)):
    return team_service.get_fiber_team_stats(db)


@router.get("/{team_id}", response_model=FiberTeamResponse)
def get_team(team_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(get_current_user)):
    team = team_service.get_fiber_team(db, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Fiber team not found")
    return team


@router.patch("/{team_id}", response_model=IdResponse)
def update_team(
    team_id: uuid.UUID,
    payload: FiberTeamUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": team_service.update_fiber_team(db, team_id, payload, actor_id=actor.id)}


@router.delete("/{team_id}", response_model=IdResponse)
def delete_team(team_id: uuid.UUID, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": team_service.delete_fiber_team(db, team_id, actor_id=actor.id)}


@router.post("/{team_id}/assign", response_model=IdResponse)
def assign_team(
    team_id: uuid.UUID,
    details: TeamAssignment,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": team_service.assign_team(db, team_id, details, actor_id=actor.id)}


@router.post("/{team_id}/clear-assignment", response_model=IdResponse)
def clear_assignment(team_id: uuid.UUID, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": team_service.clear_assignment(db, team_id, actor_id=actor.id)}
