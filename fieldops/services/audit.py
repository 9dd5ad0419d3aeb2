"""
Audit logging service.
Append-only audit log with integrity hashing.
"""
import hashlib
import json
from datetime import datetime
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session

from ..models.models import AuditLog
from ..config import settings


def create_audit_log(
    db: Session,
    entity_type: str,
    entity_id,
    action: str,
    actor_id=None,
    changes_json: Optional[Dict] = None,
    integrity_secret: Optional[str] = None
) -> AuditLog:
    """
    Add an append-only audit log entry to the current transaction.

    Args:
        db: Database session
        entity_type: Type of entity (contractor|fiber_team|leave_request|...)
        entity_id: Entity ID
        action: Action performed (CREATE|UPDATE|APPROVE|REJECT|COMPLETE|ASSIGN|CLEAR|STATUS|DELETE)
        actor_id: User ID who performed the action
        changes_json: Before/after diff
        integrity_secret: Secret for integrity hash (defaults to JWT_SECRET)

    Returns:
        Created AuditLog object (flushed, not committed)
    """
    timestamp_utc = datetime.utcnow().replace(tzinfo=None)

    # JSON column needs plain values; ids and dates become strings
    if changes_json is not None:
        changes_json = json.loads(json.dumps(changes_json, default=str))

    integrity_hash = None
    if integrity_secret is None:
        integrity_secret = settings.jwt_secret

    if integrity_secret:
        canonical_data = {
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "action": action,
            "actor_id": str(actor_id) if actor_id else None,
            "timestamp_utc": timestamp_utc.isoformat(),
            "changes": changes_json,
        }

        # Remove None values and sort keys for consistency
        canonical_data = {k: v for k, v in canonical_data.items() if v is not None}
        canonical_json = json.dumps(canonical_data, sort_keys=True, default=str)

        hash_input = f"{canonical_json}:{integrity_secret}"
        integrity_hash = hashlib.sha256(hash_input.encode()).hexdigest()

    audit_log = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        changes_json=changes_json,
        timestamp_utc=timestamp_utc,
        integrity_hash=integrity_hash,
    )

    db.add(audit_log)
    db.flush()
    return audit_log


def compute_diff(before: Dict, after: Dict) -> Dict:
    """
    Compute a diff between two dictionaries.

    Args:
        before: Before state
        after: After state

    Returns:
        Dict with before/after values for changed fields
    """
    diff = {}
    all_keys = set(before.keys()) | set(after.keys())

    for key in all_keys:
        before_val = before.get(key)
        after_val = after.get(key)

        if before_val != after_val:
            diff[key] = {
                "before": before_val,
                "after": after_val,
            }

    return diff
