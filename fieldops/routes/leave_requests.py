import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, require_roles
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.leave_requests import (
    DecisionRequest,
    LeaveRequestCreate,
    LeaveRequestResponse,
    LeaveRequestStats,
    LeaveRequestUpdate,
)
from ..services import leave_requests as leave_service


router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])

approvers = require_roles("admin", "manager")


@router.post("", response_model=IdResponse, status_code=201)
def create_leave_request(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": leave_service.create_leave_request(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[LeaveRequestResponse])
def list_leave_requests(
    status: Optional[str] = None,
    request_type: Optional[str] = None,
    requested_by: Optional[uuid.UUID] = None,
    project_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return leave_service.list_leave_requests(
        db, status=status, request_type=request_type, requested_by=requested_by, project_id=project_id
    )


@router.get("/stats", response_model=LeaveRequestStats)
def leave_stats(db: Session = Depends(get_db), _=Depends(get_current_user)):
    return leave_service.get_leave_request_stats(db)


@router.get("/{request_id}", response_model=LeaveRequestResponse)
def get_leave_request(request_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(get_current_user)):
    req = leave_service.get_leave_request(db, request_id)
    if not req:
        raise HTTPException(status_code=404, detail="Leave request not found")
    return req


@router.patch("/{request_id}", response_model=IdResponse)
def update_leave_request(
    request_id: uuid.UUID,
    payload: LeaveRequestUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": leave_service.update_leave_request(db, request_id, payload, actor_id=actor.id)}


@router.delete("/{request_id}", response_model=IdResponse)
def delete_leave_request(request_id: uuid.UUID, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": leave_service.delete_leave_request(db, request_id, actor_id=actor.id)}


@router.post("/{request_id}/approve", response_model=IdResponse)
def approve_leave_request(
    request_id: uuid.UUID,
    payload: Optional[DecisionRequest] = None,
    db: Session = Depends(get_db),
    actor: User = Depends(approvers),
):
    approver_id = (payload.approver_id if payload else None) or actor.id
    return {"id": leave_service.approve_leave_request(db, request_id, approver_id)}


@router.post("/{request_id}/reject", response_model=IdResponse)
def reject_leave_request(
    request_id: uuid.UUID,
    payload: Optional[DecisionRequest] = None,
    db: Session = Depends(get_db),
    actor: User = Depends(approvers),
):
    approver_id = (payload.approver_id if payload else None) or actor.id
    return {"id": leave_service.reject_leave_request(db, request_id, approver_id)}
