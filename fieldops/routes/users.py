import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, require_roles
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.users import UserCreate, UserResponse
from ..services import users as user_service


router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=IdResponse, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_roles("admin")),
):
    return {"id": user_service.create_user(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[UserResponse])
def list_users(
    role: Optional[str] = None,
    department: Optional[str] = None,
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return user_service.list_users(db, role=role, department=department)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(get_current_user)):
    user = user_service.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
