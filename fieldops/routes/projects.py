import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, require_roles
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.projects import ProjectCreate, ProjectResponse
from ..services import projects as project_service


router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=IdResponse, status_code=201)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_roles("admin", "manager")),
):
    return {"id": project_service.create_project(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[ProjectResponse])
def list_projects(status: Optional[str] = None, db: Session = Depends(get_db), _=Depends(get_current_user)):
    return project_service.list_projects(db, status=status)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: uuid.UUID, db: Session = Depends(get_db), _=Depends(get_current_user)):
    project = project_service.get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project
