import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, require_roles
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.leave_requests import DecisionRequest
from ..schemas.training_requests import (
    CompleteRequest,
    TrainingRequestCreate,
    TrainingRequestResponse,
    TrainingRequestStats,
    TrainingRequestUpdate,
)
from ..services import training_requests as training_service


router = APIRouter(prefix="/training-requests", tags=["training-requests"])

approvers = require_roles("admin", "manager")


@router.post("", response_model=IdResponse, status_code=201)
def create_training_request(
    payload: TrainingRequestCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": training_service.create_training_request(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[TrainingRequestResponse])
def list_training_requests(
    status: Optional[str] = None,
    training_type: Optional[str] = None,
    department: Optional[str] = None,
    requested_by: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return training_service.list_training_requests(
        db, status=status, training_type=training_type, department=department, requested_by=requested_by
    )


@router.get("/stats", response_model=TrainingRequestStats)
def training_stats(db: Session = Depends(get_db), _=Depends(get_current_user)):
    return training_service.get_training_request_stats(db)


@router.get("/{request_id}", response_model=TrainingRequestResponse)
def get_training_request(request_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(get_current_user)):
    req = training_service.get_training_request(db, request_id)
    if not req:
        raise HTTPException(status_code=404, detail="Training request not found")
    return req


@router.patch("/{request_id}", response_model=IdResponse)
def update_training_request(
    request_id: uuid.UUID,
    payload: TrainingRequestUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": training_service.update_training_request(db, request_id, payload, actor_id=actor.id)}


@router.delete("/{request_id}", response_model=IdResponse)
def delete_training_request(
    request_id: uuid.UUID, db: Session = Depends(get_db), actor: User = Depends(get_current_user)
):
    return {"id": training_service.delete_training_request(db, request_id, actor_id=actor.id)}


@router.post("/{request_id}/approve", response_model=IdResponse)
def approve_training_request(
    request_id: uuid.UUID,
    payload: Optional[DecisionRequest] = None,
    db: Session = Depends(get_db),
    actor: User = Depends(approvers),
):
    payload = payload or DecisionRequest()
    return {
        "id": training_service.approve_training_request(
            db, request_id, payload.approver_id or actor.id, notes=payload.notes
        )
    }


@router.post("/{request_id}/reject", response_model=IdResponse)
def reject_training_request(
    request_id: uuid.UUID,
    payload: Optional[DecisionRequest] = None,
    db: Session = Depends(get_db),
    actor: User = Depends(approvers),
):
    payload = payload or DecisionRequest()
    return {
        "id": training_service.reject_training_request(
            db, request_id, payload.approver_id or actor.id, notes=payload.notes
        )
    }


@router.post("/{request_id}/complete", response_model=IdResponse)
def complete_training_request(
    request_id: uuid.UUID,
    payload: Optional[CompleteRequest] = None,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    notes = payload.notes if payload else None
    return {"id": training_service.complete_training_request(db, request_id, notes=notes, actor_id=actor.id)}
