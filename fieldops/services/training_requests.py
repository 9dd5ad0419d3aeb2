import uuid
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from ..errors import InvalidFieldError
from ..models.models import TrainingRequest
from ..schemas.training_requests import TrainingRequestCreate, TrainingRequestUpdate
from .approvals import APPROVED, COMPLETED, PENDING, REJECTED, decide, merge_notes
from .audit import create_audit_log
from .crud import apply_patch, get_by_id, get_for_update, indexed_list, row_to_dict, transaction
from .enrichment import UNKNOWN, ReferenceResolver
from .stats import count_by, status_counts


logger = structlog.get_logger(__name__)

ENTITY = "Training request"
LIST_INDEXES = ("status", "training_type", "department", "requested_by")


def _project(req: TrainingRequest, resolver: ReferenceResolver) -> Dict:
    data = row_to_dict(req)
    data["requester_name"] = resolver.user_name(req.requested_by, UNKNOWN)
    data["approver_name"] = resolver.user_name(req.approved_by)
    return data


def _resolver_for(db: Session, rows: List[TrainingRequest]) -> ReferenceResolver:
    return ReferenceResolver(db).load(user_ids=[u for r in rows for u in (r.requested_by, r.approved_by)])


def create_training_request(
    db: Session, payload: TrainingRequestCreate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump()
    data["requested_by"] = data.get("requested_by") or actor_id
    if data["requested_by"] is None:
        raise InvalidFieldError("requested_by", "is required")

    with transaction(db):
        req = TrainingRequest(**data, status=PENDING, approved_by=None)
        db.add(req)
        db.flush()
        create_audit_log(db, "training_request", req.id, "CREATE", actor_id=actor_id,
                         changes_json={"training_type": req.training_type, "status": PENDING})
        request_id = req.id
    logger.info("training_request_created", request_id=str(request_id), training_type=data["training_type"])
    return request_id


def update_training_request(
    db: Session, request_id: uuid.UUID, payload: TrainingRequestUpdate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump(exclude_unset=True)
    with transaction(db):
        req = get_for_update(db, TrainingRequest, request_id, ENTITY)
        changes = apply_patch(req, data, protected=("status", "approved_by", "requested_by"))
        create_audit_log(db, "training_request", req.id, "UPDATE", actor_id=actor_id, changes_json=changes)
    logger.info("training_request_updated", request_id=str(request_id), fields=sorted(data))
    return request_id


def approve_training_request(
    db: Session, request_id: uuid.UUID, approver_id: uuid.UUID, notes: Optional[str] = None
) -> uuid.UUID:
    with transaction(db):
        decide(db, TrainingRequest, ENTITY, "training_request", request_id, APPROVED, approver_id, notes)
    logger.info("training_request_approved", request_id=str(request_id), approver_id=str(approver_id))
    return request_id


def reject_training_request(
    db: Session, request_id: uuid.UUID, approver_id: uuid.UUID, notes: Optional[str] = None
) -> uuid.UUID:
    with transaction(db):
        decide(db, TrainingRequest, ENTITY, "training_request", request_id, REJECTED, approver_id, notes)
    logger.info("training_request_rejected", request_id=str(request_id), approver_id=str(approver_id))
    return request_id


def complete_training_request(
    db: Session, request_id: uuid.UUID, notes: Optional[str] = None, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    """Mark training as done. Allowed from any status, including Pending."""
    with transaction(db):
        req = get_for_update(db, TrainingRequest, request_id, ENTITY)
        before = req.status
        req.status = COMPLETED
        req.notes = merge_notes(req.notes, notes)
        create_audit_log(db, "training_request", req.id, "COMPLETE", actor_id=actor_id,
                         changes_json={"status": {"before": before, "after": COMPLETED}})
    logger.info("training_request_completed", request_id=str(request_id), previous_status=before)
    return request_id


def delete_training_request(db: Session, request_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    with transaction(db):
        req = get_for_update(db, TrainingRequest, request_id, ENTITY)
        create_audit_log(db, "training_request", req.id, "DELETE", actor_id=actor_id,
                         changes_json={"status": req.status})
        db.delete(req)
    logger.info("training_request_deleted", request_id=str(request_id))
    return request_id


def get_training_request(db: Session, request_id: uuid.UUID) -> Optional[Dict]:
    req = get_by_id(db, TrainingRequest, request_id)
    if not req:
        return None
    return _project(req, _resolver_for(db, [req]))


def list_training_requests(
    db: Session,
    status: Optional[str] = None,
    training_type: Optional[str] = None,
    department: Optional[str] = None,
    requested_by: Optional[uuid.UUID] = None,
) -> List[Dict]:
    rows = indexed_list(
        db,
        TrainingRequest,
        {"status": status, "training_type": training_type, "department": department, "requested_by": requested_by},
        LIST_INDEXES,
        order_by=TrainingRequest.created_at.desc(),
    )
    resolver = _resolver_for(db, rows)
    return [_project(r, resolver) for r in rows]


def get_training_request_stats(db: Session) -> Dict:
    rows = db.query(TrainingRequest).all()
    return {
        "total": len(rows),
        **status_counts(rows, (PENDING, APPROVED, REJECTED, COMPLETED)),
        "by_type": count_by(rows, "training_type"),
    }
