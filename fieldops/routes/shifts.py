import uuid
from datetime import date as date_type
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.shifts import ShiftCreate, ShiftResponse, ShiftStats, ShiftUpdate
from ..services import shifts as shift_service


router = APIRouter(prefix="/shifts", tags=["shifts"])


@router.post("", response_model=IdResponse, status_code=201)
def create_shift(payload: ShiftCreate, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": shift_service.create_shift(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[ShiftResponse])
def list_shifts(
    user_id: Optional[uuid.UUID] = None,
    date: Optional[date_type] = None,
    project_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return shift_service.list_shifts(db, user_id=user_id, date=date, project_id=project_id, status=status)


@router.get("/range", response_model=List[ShiftResponse])
def shifts_in_range(
    start_date: date_type,
    end_date: date_type,
    project_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return shift_service.get_shifts_by_date_range(db, start_date, end_date, project_id=project_id)


@router.get("/stats", response_model=ShiftStats)
def shift_stats(
    date: Optional[date_type] = None,
    project_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return shift_service.get_shift_stats(db, date=date, project_id=project_id)


@router.get("/{shift_id}", response_model=ShiftResponse)
def get_shift(shift_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(get_current_user)):
    shift = shift_service.get_shift(db, shift_id)
    if not shift:
        raise HTTPException(status_code=404, detail="Shift not found")
    return shift


@router.patch("/{shift_id}", response_model=IdResponse)
def update_shift(
    shift_id: uuid.UUID,
    payload: ShiftUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": shift_service.update_shift(db, shift_id, payload, actor_id=actor.id)}


@router.delete("/{shift_id}", response_model=IdResponse)
def delete_shift(shift_id: uuid.UUID, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": shift_service.delete_shift(db, shift_id, actor_id=actor.id)}
