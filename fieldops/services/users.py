import uuid
from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import DuplicateKeyError
from ..models.models import User
from ..schemas.users import UserCreate
from .audit import create_audit_log
from .crud import get_by_id, indexed_list, transaction


logger = structlog.get_logger(__name__)


def create_user(db: Session, payload: UserCreate, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    data = payload.model_dump()
    try:
        with transaction(db):
            if db.query(User.id).filter(User.email == data["email"]).first():
                raise DuplicateKeyError("User", "email", data["email"])
            user = User(**data)
            db.add(user)
            db.flush()
            create_audit_log(db, "user", user.id, "CREATE", actor_id=actor_id, changes_json={"email": user.email})
            user_id = user.id
    except IntegrityError:
        raise DuplicateKeyError("User", "email", data["email"])
    logger.info("user_created", user_id=str(user_id), role=data["role"])
    return user_id


def get_user(db: Session, user_id: uuid.UUID) -> Optional[User]:
    return get_by_id(db, User, user_id)


def list_users(db: Session, role: Optional[str] = None, department: Optional[str] = None) -> List[User]:
    rows = indexed_list(db, User, {"role": role, "department": department}, ("role", "department"))
    return sorted(rows, key=lambda u: (u.full_name or "").lower())
