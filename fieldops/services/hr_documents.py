"""
HR document service.

A document's expiry status is never stored: it is derived from ``expiry_date``
against the clock's "today" on every read, through ``expiry.classify``.
"""
import uuid
from datetime import date
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from ..errors import InvalidFieldError
from ..models.models import HRDocument
from ..schemas.hr_documents import HRDocumentCreate, HRDocumentUpdate
from ..storage.provider import StorageProvider
from .audit import create_audit_log
from .crud import apply_patch, get_by_id, get_for_update, indexed_list, row_to_dict, transaction
from .enrichment import UNKNOWN, ReferenceResolver
from .expiry import TIER_EXPIRED, TIER_INVALID, TIER_NONE, TIER_VALID, classify
from .files import check_file_refs, detach_file_objects, release_blobs
from .stats import count_by
from .time_rules import Clock, SystemClock


logger = structlog.get_logger(__name__)

ENTITY = "HR document"


def _today(clock: Optional[Clock]) -> date:
    return (clock or SystemClock()).today()


def _project(doc: HRDocument, resolver: ReferenceResolver, today: date) -> Dict:
    data = row_to_dict(doc)
    staff = resolver.user(doc.user_id)
    data["staff_name"] = staff.full_name if staff else UNKNOWN
    data["staff_email"] = staff.email if staff else None
    data["file_url"] = resolver.file_url(doc.file_id)
    data["expiry"] = classify(doc.expiry_date, today).as_dict()
    return data


def _project_all(db: Session, rows: List[HRDocument], storage: Optional[StorageProvider], today: date) -> List[Dict]:
    resolver = ReferenceResolver(db, storage).load(
        user_ids=[d.user_id for d in rows],
        file_ids=[d.file_id for d in rows],
    )
    return [_project(d, resolver, today) for d in rows]


def create_hr_document(db: Session, payload: HRDocumentCreate, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    data = payload.model_dump()
    data["created_by"] = data.get("created_by") or actor_id
    if data["created_by"] is None:
        raise InvalidFieldError("created_by", "is required")

    with transaction(db):
        if data.get("file_id") is not None:
            check_file_refs(db, [data["file_id"]])
        doc = HRDocument(**data)
        db.add(doc)
        db.flush()
        create_audit_log(db, "hr_document", doc.id, "CREATE", actor_id=actor_id,
                         changes_json={"document_type": doc.document_type, "user_id": doc.user_id})
        doc_id = doc.id
    logger.info("hr_document_created", document_id=str(doc_id), document_type=data["document_type"])
    return doc_id


def update_hr_document(
    db: Session,
    doc_id: uuid.UUID,
    payload: HRDocumentUpdate,
    actor_id: Optional[uuid.UUID] = None,
    storage: Optional[StorageProvider] = None,
) -> uuid.UUID:
    """Patch a document. Replacing or clearing ``file_id`` releases the previous file."""
    data = payload.model_dump(exclude_unset=True)
    keys: List[str] = []
    with transaction(db):
        doc = get_for_update(db, HRDocument, doc_id, ENTITY)
        previous_file = doc.file_id
        if data.get("file_id") is not None and data["file_id"] != previous_file:
            check_file_refs(db, [data["file_id"]], owner=doc)
        changes = apply_patch(doc, data, protected=("created_by",))
        if "file_id" in changes and previous_file is not None:
            keys = detach_file_objects(db, [previous_file])
        create_audit_log(db, "hr_document", doc.id, "UPDATE", actor_id=actor_id, changes_json=changes)
    release_blobs(storage, keys)
    logger.info("hr_document_updated", document_id=str(doc_id), fields=sorted(data))
    return doc_id


def delete_hr_document(
    db: Session,
    doc_id: uuid.UUID,
    storage: Optional[StorageProvider] = None,
    actor_id: Optional[uuid.UUID] = None,
) -> uuid.UUID:
    with transaction(db):
        doc = get_for_update(db, HRDocument, doc_id, ENTITY)
        keys = detach_file_objects(db, [doc.file_id]) if doc.file_id else []
        create_audit_log(db, "hr_document", doc.id, "DELETE", actor_id=actor_id,
                         changes_json={"document_type": doc.document_type, "file_id": doc.file_id})
        db.delete(doc)
    release_blobs(storage, keys)
    logger.info("hr_document_deleted", document_id=str(doc_id), blobs=len(keys))
    return doc_id


def get_hr_document(
    db: Session, doc_id: uuid.UUID, storage: Optional[StorageProvider] = None, clock: Optional[Clock] = None
) -> Optional[Dict]:
    doc = get_by_id(db, HRDocument, doc_id)
    if not doc:
        return None
    return _project_all(db, [doc], storage, _today(clock))[0]


def list_hr_documents(
    db: Session,
    user_id: Optional[uuid.UUID] = None,
    document_type: Optional[str] = None,
    storage: Optional[StorageProvider] = None,
    clock: Optional[Clock] = None,
) -> List[Dict]:
    today = _today(clock)
    rows = indexed_list(
        db, HRDocument, {"user_id": user_id, "document_type": document_type}, ("user_id", "document_type"),
        order_by=HRDocument.created_at.desc(),
    )
    return _project_all(db, rows, storage, today)


def get_expiring_documents(
    db: Session, days: int = 30, storage: Optional[StorageProvider] = None, clock: Optional[Clock] = None
) -> List[Dict]:
    """Documents that expire today or within ``days`` days, soonest first."""
    today = _today(clock)
    rows = db.query(HRDocument).filter(HRDocument.expiry_date.isnot(None)).all()
    status = {d.id: classify(d.expiry_date, today) for d in rows}
    matched = [d for d in rows if status[d.id].days_left is not None and 0 <= status[d.id].days_left <= days]
    matched.sort(key=lambda d: status[d.id].sort_key)
    return _project_all(db, matched, storage, today)


def get_expired_documents(
    db: Session, storage: Optional[StorageProvider] = None, clock: Optional[Clock] = None
) -> List[Dict]:
    today = _today(clock)
    rows = db.query(HRDocument).filter(HRDocument.expiry_date.isnot(None)).all()
    status = {d.id: classify(d.expiry_date, today) for d in rows}
    matched = [d for d in rows if status[d.id].tier == TIER_EXPIRED]
    matched.sort(key=lambda d: status[d.id].sort_key)
    return _project_all(db, matched, storage, today)


def get_hr_document_stats(db: Session, clock: Optional[Clock] = None) -> Dict:
    today = _today(clock)
    rows = db.query(HRDocument).all()
    tiers = [classify(d.expiry_date, today) for d in rows]
    return {
        "total": len(rows),
        "expired": sum(1 for s in tiers if s.is_expired),
        "expiring_soon": sum(1 for s in tiers if s.is_expiring),
        # Documents without an expiry date never lapse
        "valid": sum(1 for s in tiers if s.tier in (TIER_VALID, TIER_NONE)),
        "invalid": sum(1 for s in tiers if s.tier == TIER_INVALID),
        "by_type": count_by(rows, "document_type"),
    }
