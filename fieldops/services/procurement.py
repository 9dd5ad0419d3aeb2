"""
Procurement log service.

Status follows Pending -> Approved -> Ordered -> Delivered -> Paid, and any
non-terminal log may be Cancelled. Every status change, including one sent
through a generic update, is checked against that flow.
"""
import uuid
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from ..errors import InvalidFieldError, InvalidTransitionError
from ..models.models import ProcurementLog
from ..schemas.procurement import ProcurementLogCreate, ProcurementLogUpdate
from .audit import create_audit_log
from .crud import apply_patch, get_by_id, get_for_update, indexed_list, row_to_dict, transaction
from .enrichment import UNKNOWN, ReferenceResolver
from .stats import count_by, sum_by


logger = structlog.get_logger(__name__)

ENTITY = "Procurement log"
LIST_INDEXES = ("status", "log_type", "supplier", "related_project_id")

PENDING = "Pending"
APPROVED = "Approved"
ORDERED = "Ordered"
DELIVERED = "Delivered"
PAID = "Paid"
CANCELLED = "Cancelled"

TRANSITIONS = {
    PENDING: {APPROVED, CANCELLED},
    APPROVED: {ORDERED, CANCELLED},
    ORDERED: {DELIVERED, CANCELLED},
    DELIVERED: {PAID, CANCELLED},
    PAID: set(),
    CANCELLED: set(),
}

# Committed but not yet settled
OPEN_STATUSES = (PENDING, APPROVED, ORDERED)


def check_transition(current: str, target: str) -> bool:
    """Return True when the status actually changes; raise if the move is not allowed."""
    if current == target:
        return False
    if target not in TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(ENTITY, current, target)
    return True


def _project(log: ProcurementLog, resolver: ReferenceResolver) -> Dict:
    data = row_to_dict(log)
    data["project_name"] = resolver.project_name(log.related_project_id)
    data["creator_name"] = resolver.user_name(log.created_by, UNKNOWN)
    return data


def _resolver_for(db: Session, rows: List[ProcurementLog]) -> ReferenceResolver:
    return ReferenceResolver(db).load(
        user_ids=[r.created_by for r in rows],
        project_ids=[r.related_project_id for r in rows],
    )


def create_procurement_log(
    db: Session, payload: ProcurementLogCreate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump()
    data["created_by"] = data.get("created_by") or actor_id
    if data["created_by"] is None:
        raise InvalidFieldError("created_by", "is required")

    with transaction(db):
        log = ProcurementLog(**data)
        db.add(log)
        db.flush()
        create_audit_log(db, "procurement_log", log.id, "CREATE", actor_id=actor_id,
                         changes_json={"document_id": log.document_id, "status": log.status})
        log_id = log.id
    logger.info("procurement_log_created", log_id=str(log_id), log_type=data["log_type"], supplier=data["supplier"])
    return log_id


def update_procurement_log(
    db: Session, log_id: uuid.UUID, payload: ProcurementLogUpdate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump(exclude_unset=True)
    with transaction(db):
        log = get_for_update(db, ProcurementLog, log_id, ENTITY)
        if "status" in data and data["status"] is not None:
            check_transition(log.status, data["status"])
        changes = apply_patch(log, data, protected=("created_by",))
        create_audit_log(db, "procurement_log", log.id, "UPDATE", actor_id=actor_id, changes_json=changes)
    logger.info("procurement_log_updated", log_id=str(log_id), fields=sorted(data))
    return log_id


def transition_procurement_status(
    db: Session, log_id: uuid.UUID, target: str, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    with transaction(db):
        log = get_for_update(db, ProcurementLog, log_id, ENTITY)
        before = log.status
        if check_transition(before, target):
            log.status = target
            create_audit_log(db, "procurement_log", log.id, "STATUS", actor_id=actor_id,
                             changes_json={"status": {"before": before, "after": target}})
    logger.info("procurement_status_changed", log_id=str(log_id), before=before, after=target)
    return log_id


def delete_procurement_log(db: Session, log_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    with transaction(db):
        log = get_for_update(db, ProcurementLog, log_id, ENTITY)
        create_audit_log(db, "procurement_log", log.id, "DELETE", actor_id=actor_id,
                         changes_json={"document_id": log.document_id})
        db.delete(log)
    logger.info("procurement_log_deleted", log_id=str(log_id))
    return log_id


def get_procurement_log(db: Session, log_id: uuid.UUID) -> Optional[Dict]:
    log = get_by_id(db, ProcurementLog, log_id)
    if not log:
        return None
    return _project(log, _resolver_for(db, [log]))


def list_procurement_logs(
    db: Session,
    status: Optional[str] = None,
    log_type: Optional[str] = None,
    supplier: Optional[str] = None,
    related_project_id: Optional[uuid.UUID] = None,
) -> List[Dict]:
    rows = indexed_list(
        db,
        ProcurementLog,
        {"status": status, "log_type": log_type, "supplier": supplier, "related_project_id": related_project_id},
        LIST_INDEXES,
        order_by=ProcurementLog.date.desc(),
    )
    resolver = _resolver_for(db, rows)
    return [_project(r, resolver) for r in rows]


def list_suppliers(db: Session) -> List[str]:
    return sorted({s for (s,) in db.query(ProcurementLog.supplier).distinct() if s})


def get_procurement_stats(db: Session) -> Dict:
    rows = db.query(ProcurementLog).all()
    return {
        "total_logs": len(rows),
        "by_status": count_by(rows, "status"),
        "by_type": count_by(rows, "log_type"),
        "total_amount": sum_by(rows, "amount"),
        "pending_amount": sum_by([r for r in rows if r.status in OPEN_STATUSES], "amount"),
    }
