import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.procurement import (
    ProcurementLogCreate,
    ProcurementLogResponse,
    ProcurementLogUpdate,
    ProcurementStats,
    StatusChange,
)
from ..services import procurement as procurement_service


router = APIRouter(prefix="/procurement-logs", tags=["procurement"])


@router.post("", response_model=IdResponse, status_code=201)
def create_log(payload: ProcurementLogCreate, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": procurement_service.create_procurement_log(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[ProcurementLogResponse])
def list_logs(
    status: Optional[str] = None,
    log_type: Optional[str] = None,
    supplier: Optional[str] = None,
    related_project_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return procurement_service.list_procurement_logs(
        db, status=status, log_type=log_type, supplier=supplier, related_project_id=related_project_id
    )


@router.get("/stats", response_model=ProcurementStats)
def procurement_stats(db: Session = Depends(get_db), _=Depends(get_current_user)):
    return procurement_service.get_procurement_stats(db)


@router.get("/suppliers", response_model=List[str])
def suppliers(db: Session = Depends(get_db), _=Depends(get_current_user)):
    return procurement_service.list_suppliers(db)


@router.get("/{log_id}", response_model=ProcurementLogResponse)
def get_log(log_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(get_current_user)):
    log = procurement_service.get_procurement_log(db, log_id)
    if not log:
        raise HTTPException(status_code=404, detail="Procurement log not found")
    return log


@router.patch("/{log_id}", response_model=IdResponse)
def update_log(
    log_id: uuid.UUID,
    payload: ProcurementLogUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": procurement_service.update_procurement_log(db, log_id, payload, actor_id=actor.id)}


@router.delete("/{log_id}", response_model=IdResponse)
def delete_log(log_id: uuid.UUID, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": procurement_service.delete_procurement_log(db, log_id, actor_id=actor.id)}


@router.post("/{log_id}/status", response_model=IdResponse)
def change_status(
    log_id: uuid.UUID,
    payload: StatusChange,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": procurement_service.transition_procurement_status(db, log_id, payload.status, actor_id=actor.id)}
