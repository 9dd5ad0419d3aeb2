import uuid
from datetime import date
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from ..errors import InvalidFieldError
from ..models.models import Shift
from ..schemas.shifts import ShiftCreate, ShiftUpdate
from .audit import create_audit_log
from .crud import apply_patch, get_by_id, get_for_update, indexed_list, row_to_dict, transaction
from .enrichment import UNKNOWN, ReferenceResolver
from .stats import count_by, status_counts


logger = structlog.get_logger(__name__)

ENTITY = "Shift"
LIST_INDEXES = ("user_id", "date", "project_id")
STATUSES = ("Scheduled", "In Progress", "Completed", "Cancelled")


def _project(shift: Shift, resolver: ReferenceResolver) -> Dict:
    data = row_to_dict(shift)
    user = resolver.user(shift.user_id)
    data["user_name"] = user.full_name if user else UNKNOWN
    data["user_role"] = user.role if user else UNKNOWN
    data["project_name"] = resolver.project_name(shift.project_id)
    return data


def _project_all(db: Session, rows: List[Shift]) -> List[Dict]:
    resolver = ReferenceResolver(db).load(
        user_ids=[s.user_id for s in rows],
        project_ids=[s.project_id for s in rows],
    )
    return [_project(s, resolver) for s in rows]


def _sorted(rows: List[Shift]) -> List[Shift]:
    return sorted(rows, key=lambda s: (s.date, s.start_time))


def create_shift(db: Session, payload: ShiftCreate, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    data = payload.model_dump()
    data["created_by"] = data.get("created_by") or actor_id
    if data["created_by"] is None:
        raise InvalidFieldError("created_by", "is required")

    with transaction(db):
        shift = Shift(**data)
        db.add(shift)
        db.flush()
        create_audit_log(db, "shift", shift.id, "CREATE", actor_id=actor_id,
                         changes_json={"user_id": shift.user_id, "date": shift.date})
        shift_id = shift.id
    logger.info("shift_created", shift_id=str(shift_id), user_id=str(data["user_id"]), date=str(data["date"]))
    return shift_id


def update_shift(
    db: Session, shift_id: uuid.UUID, payload: ShiftUpdate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump(exclude_unset=True)
    with transaction(db):
        shift = get_for_update(db, Shift, shift_id, ENTITY)
        changes = apply_patch(shift, data, protected=("created_by",))
        create_audit_log(db, "shift", shift.id, "UPDATE", actor_id=actor_id, changes_json=changes)
    logger.info("shift_updated", shift_id=str(shift_id), fields=sorted(data))
    return shift_id


def delete_shift(db: Session, shift_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    with transaction(db):
        shift = get_for_update(db, Shift, shift_id, ENTITY)
        create_audit_log(db, "shift", shift.id, "DELETE", actor_id=actor_id,
                         changes_json={"user_id": shift.user_id, "date": shift.date})
        db.delete(shift)
    logger.info("shift_deleted", shift_id=str(shift_id))
    return shift_id


def get_shift(db: Session, shift_id: uuid.UUID) -> Optional[Dict]:
    shift = get_by_id(db, Shift, shift_id)
    if not shift:
        return None
    return _project_all(db, [shift])[0]


def list_shifts(
    db: Session,
    user_id: Optional[uuid.UUID] = None,
    date: Optional[date] = None,
    project_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
) -> List[Dict]:
    rows = indexed_list(
        db,
        Shift,
        {"user_id": user_id, "date": date, "project_id": project_id, "status": status},
        LIST_INDEXES,
    )
    return _project_all(db, _sorted(rows))


def get_shifts_by_date_range(
    db: Session, start_date: date, end_date: date, project_id: Optional[uuid.UUID] = None
) -> List[Dict]:
    if end_date < start_date:
        raise InvalidFieldError("end_date", "must not be before start_date")
    query = db.query(Shift).filter(Shift.date >= start_date, Shift.date <= end_date)
    if project_id is not None:
        query = query.filter(Shift.project_id == project_id)
    return _project_all(db, _sorted(query.all()))


def get_shift_stats(db: Session, date: Optional[date] = None, project_id: Optional[uuid.UUID] = None) -> Dict:
    query = db.query(Shift)
    if date is not None:
        query = query.filter(Shift.date == date)
    if project_id is not None:
        query = query.filter(Shift.project_id == project_id)
    rows = query.all()
    return {
        "total": len(rows),
        **status_counts(rows, STATUSES),
        "by_shift_type": count_by(rows, "shift_type"),
    }
