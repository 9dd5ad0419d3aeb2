import uuid
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from ..errors import InvalidFieldError
from ..models.models import LeaveRequest
from ..schemas.leave_requests import LeaveRequestCreate, LeaveRequestUpdate
from .approvals import APPROVED, PENDING, REJECTED, decide
from .audit import create_audit_log
from .crud import apply_patch, get_by_id, get_for_update, indexed_list, row_to_dict, transaction
from .enrichment import UNKNOWN, ReferenceResolver
from .stats import count_by, status_counts


logger = structlog.get_logger(__name__)

ENTITY = "Leave request"
LIST_INDEXES = ("status", "request_type", "requested_by", "project_id")


def _project(req: LeaveRequest, resolver: ReferenceResolver) -> Dict:
    data = row_to_dict(req)
    data["requester_name"] = resolver.user_name(req.requested_by, UNKNOWN)
    data["approver_name"] = resolver.user_name(req.approved_by)
    data["swap_with_name"] = resolver.user_name(req.shift_swap_with)
    data["project_name"] = resolver.project_name(req.project_id)
    return data


def _resolver_for(db: Session, rows: List[LeaveRequest]) -> ReferenceResolver:
    return ReferenceResolver(db).load(
        user_ids=[u for r in rows for u in (r.requested_by, r.approved_by, r.shift_swap_with)],
        project_ids=[r.project_id for r in rows],
    )


def create_leave_request(db: Session, payload: LeaveRequestCreate, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    data = payload.model_dump()
    data["requested_by"] = data.get("requested_by") or actor_id
    if data["requested_by"] is None:
        raise InvalidFieldError("requested_by", "is required")

    with transaction(db):
        req = LeaveRequest(**data, status=PENDING, approved_by=None)
        db.add(req)
        db.flush()
        create_audit_log(db, "leave_request", req.id, "CREATE", actor_id=actor_id,
                         changes_json={"request_type": req.request_type, "status": PENDING})
        request_id = req.id
    logger.info("leave_request_created", request_id=str(request_id), request_type=data["request_type"])
    return request_id


def update_leave_request(
    db: Session, request_id: uuid.UUID, payload: LeaveRequestUpdate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump(exclude_unset=True)
    with transaction(db):
        req = get_for_update(db, LeaveRequest, request_id, ENTITY)
        changes = apply_patch(req, data, protected=("status", "approved_by", "requested_by"))
        if req.end_date < req.start_date:
            raise InvalidFieldError("end_date", "must not be before start_date")
        create_audit_log(db, "leave_request", req.id, "UPDATE", actor_id=actor_id, changes_json=changes)
    logger.info("leave_request_updated", request_id=str(request_id), fields=sorted(data))
    return request_id


def approve_leave_request(db: Session, request_id: uuid.UUID, approver_id: uuid.UUID) -> uuid.UUID:
    with transaction(db):
        decide(db, LeaveRequest, ENTITY, "leave_request", request_id, APPROVED, approver_id)
    logger.info("leave_request_approved", request_id=str(request_id), approver_id=str(approver_id))
    return request_id


def reject_leave_request(db: Session, request_id: uuid.UUID, approver_id: uuid.UUID) -> uuid.UUID:
    with transaction(db):
        decide(db, LeaveRequest, ENTITY, "leave_request", request_id, REJECTED, approver_id)
    logger.info("leave_request_rejected", request_id=str(request_id), approver_id=str(approver_id))
    return request_id


def delete_leave_request(db: Session, request_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    with transaction(db):
        req = get_for_update(db, LeaveRequest, request_id, ENTITY)
        create_audit_log(db, "leave_request", req.id, "DELETE", actor_id=actor_id,
                         changes_json={"status": req.status})
        db.delete(req)
    logger.info("leave_request_deleted", request_id=str(request_id))
    return request_id


def get_leave_request(db: Session, request_id: uuid.UUID) -> Optional[Dict]:
    req = get_by_id(db, LeaveRequest, request_id)
    if not req:
        return None
    return _project(req, _resolver_for(db, [req]))


def list_leave_requests(
    db: Session,
    status: Optional[str] = None,
    request_type: Optional[str] = None,
    requested_by: Optional[uuid.UUID] = None,
    project_id: Optional[uuid.UUID] = None,
) -> List[Dict]:
    rows = indexed_list(
        db,
        LeaveRequest,
        {"status": status, "request_type": request_type, "requested_by": requested_by, "project_id": project_id},
        LIST_INDEXES,
        order_by=LeaveRequest.created_at.desc(),
    )
    resolver = _resolver_for(db, rows)
    return [_project(r, resolver) for r in rows]


def get_leave_request_stats(db: Session) -> Dict:
    rows = db.query(LeaveRequest).all()
    return {
        "total": len(rows),
        **status_counts(rows, (PENDING, APPROVED, REJECTED)),
        "by_type": count_by(rows, "request_type"),
    }
