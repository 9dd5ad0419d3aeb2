import uuid
from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import DuplicateKeyError
from ..models.models import Project
from ..schemas.projects import ProjectCreate
from .audit import create_audit_log
from .crud import get_by_id, indexed_list, transaction


logger = structlog.get_logger(__name__)


def create_project(db: Session, payload: ProjectCreate, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    data = payload.model_dump()
    try:
        with transaction(db):
            if db.query(Project.id).filter(Project.code == data["code"]).first():
                raise DuplicateKeyError("Project", "code", data["code"])
            project = Project(**data, created_by=actor_id)
            db.add(project)
            db.flush()
            create_audit_log(db, "project", project.id, "CREATE", actor_id=actor_id, changes_json={"code": project.code})
            project_id = project.id
    except IntegrityError:
        raise DuplicateKeyError("Project", "code", data["code"])
    logger.info("project_created", project_id=str(project_id), code=data["code"])
    return project_id


def get_project(db: Session, project_id: uuid.UUID) -> Optional[Project]:
    return get_by_id(db, Project, project_id)


def list_projects(db: Session, status: Optional[str] = None) -> List[Project]:
    return indexed_list(db, Project, {"status": status}, ("status",), order_by=Project.name)
