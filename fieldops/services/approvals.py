"""
Approval flow shared by leave and training requests.

Pending -> Approved | Rejected. Repeating the decision a request already has
re-patches it; any other move out of a decided state is refused.
"""
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import InvalidTransitionError
from .audit import create_audit_log
from .crud import get_for_update


PENDING = "Pending"
APPROVED = "Approved"
REJECTED = "Rejected"
COMPLETED = "Completed"


def check_decision(entity: str, current: str, target: str) -> None:
    if current == PENDING or current == target:
        return
    raise InvalidTransitionError(entity, current, target)


def merge_notes(previous: Optional[str], supplied: Optional[str]) -> Optional[str]:
    if supplied is not None and supplied.strip():
        return supplied
    return previous


def decide(
    db: Session,
    model,
    entity: str,
    entity_type: str,
    request_id,
    target: str,
    approver_id,
    notes: Optional[str] = None,
):
    """Lock, validate and apply an approve/reject decision. Caller commits."""
    obj = get_for_update(db, model, request_id, entity)
    check_decision(entity, obj.status, target)
    before = {"status": obj.status, "approved_by": obj.approved_by}
    obj.status = target
    obj.approved_by = approver_id
    if hasattr(obj, "notes"):
        obj.notes = merge_notes(obj.notes, notes)
    create_audit_log(
        db,
        entity_type=entity_type,
        entity_id=obj.id,
        action="APPROVE" if target == APPROVED else "REJECT",
        actor_id=approver_id,
        changes_json={"before": before, "after": {"status": target, "approved_by": approver_id}},
    )
    return obj
