import uuid
from typing import Dict, List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import DuplicateKeyError, InvalidFieldError, NotFoundError
from ..models.models import Contractor
from ..schemas.contractors import ContractorCreate, ContractorUpdate
from ..storage.provider import StorageProvider
from .audit import create_audit_log
from .crud import apply_patch, get_by_id, get_for_update, indexed_list, row_to_dict, transaction
from .enrichment import UNKNOWN, ReferenceResolver
from .files import check_file_refs, detach_file_objects, release_blobs
from .stats import count_by, count_many


logger = structlog.get_logger(__name__)

ENTITY = "Contractor"


def _company_taken(db: Session, company_name: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    # Active and inactive records share one namespace
    query = db.query(Contractor.id).filter(Contractor.company_name == company_name)
    if exclude_id is not None:
        query = query.filter(Contractor.id != exclude_id)
    return query.first() is not None


def _project(contractor: Contractor, resolver: ReferenceResolver) -> Dict:
    data = row_to_dict(contractor)
    data["documents"] = list(contractor.documents or [])
    data["creator_name"] = resolver.user_name(contractor.created_by, UNKNOWN)
    data["document_urls"] = {doc_id: resolver.file_url(doc_id) for doc_id in data["documents"]}
    return data


def _resolver_for(db: Session, rows: List[Contractor], storage: Optional[StorageProvider]) -> ReferenceResolver:
    return ReferenceResolver(db, storage).load(
        user_ids=[c.created_by for c in rows],
        file_ids=[d for c in rows for d in (c.documents or [])],
    )


def create_contractor(db: Session, payload: ContractorCreate, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    data = payload.model_dump()
    data["created_by"] = data.get("created_by") or actor_id
    if data["created_by"] is None:
        raise InvalidFieldError("created_by", "is required")

    try:
        with transaction(db):
            data["documents"] = [str(d) for d in check_file_refs(db, data.get("documents") or [])]
            if _company_taken(db, data["company_name"]):
                raise DuplicateKeyError(ENTITY, "company_name", data["company_name"])
            contractor = Contractor(**data)
            db.add(contractor)
            db.flush()
            create_audit_log(db, "contractor", contractor.id, "CREATE", actor_id=actor_id,
                             changes_json={"company_name": contractor.company_name})
            contractor_id = contractor.id
    except IntegrityError:
        # Lost a concurrent insert race on the unique index
        raise DuplicateKeyError(ENTITY, "company_name", data["company_name"])

    logger.info("contractor_created", contractor_id=str(contractor_id), company_name=data["company_name"])
    return contractor_id


def update_contractor(
    db: Session, contractor_id: uuid.UUID, payload: ContractorUpdate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump(exclude_unset=True)
    try:
        with transaction(db):
            contractor = get_for_update(db, Contractor, contractor_id, ENTITY)
            new_name = data.get("company_name")
            if new_name is not None and new_name != contractor.company_name and _company_taken(db, new_name, contractor.id):
                raise DuplicateKeyError(ENTITY, "company_name", new_name)
            changes = apply_patch(contractor, data, protected=("documents", "created_by"))
            create_audit_log(db, "contractor", contractor.id, "UPDATE", actor_id=actor_id, changes_json=changes)
    except IntegrityError:
        raise DuplicateKeyError(ENTITY, "company_name", data.get("company_name"))
    logger.info("contractor_updated", contractor_id=str(contractor_id), fields=sorted(data))
    return contractor_id


def _set_fields(db: Session, contractor_id: uuid.UUID, action: str, actor_id: Optional[uuid.UUID], **fields) -> uuid.UUID:
    with transaction(db):
        contractor = get_for_update(db, Contractor, contractor_id, ENTITY)
        changes = apply_patch(contractor, fields)
        create_audit_log(db, "contractor", contractor.id, action, actor_id=actor_id, changes_json=changes)
    return contractor_id


def rate_contractor(
    db: Session, contractor_id: uuid.UUID, rating: Optional[str], actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    _set_fields(db, contractor_id, "RATE", actor_id, rating=rating)
    logger.info("contractor_rated", contractor_id=str(contractor_id), rating=rating)
    return contractor_id


def deactivate_contractor(db: Session, contractor_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    _set_fields(db, contractor_id, "DEACTIVATE", actor_id, is_active=False)
    logger.info("contractor_deactivated", contractor_id=str(contractor_id))
    return contractor_id


def reactivate_contractor(db: Session, contractor_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None) -> uuid.UUID:
    _set_fields(db, contractor_id, "REACTIVATE", actor_id, is_active=True)
    logger.info("contractor_reactivated", contractor_id=str(contractor_id))
    return contractor_id


def attach_contractor_document(
    db: Session, contractor_id: uuid.UUID, file_id: uuid.UUID, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    with transaction(db):
        contractor = get_for_update(db, Contractor, contractor_id, ENTITY)
        documents = list(contractor.documents or [])
        if str(file_id) not in documents:
            check_file_refs(db, [file_id], owner=contractor)
            documents.append(str(file_id))
            contractor.documents = documents
            create_audit_log(db, "contractor", contractor.id, "ATTACH", actor_id=actor_id,
                             changes_json={"file_id": str(file_id)})
    logger.info("contractor_document_attached", contractor_id=str(contractor_id), file_id=str(file_id))
    return contractor_id


def detach_contractor_document(
    db: Session,
    contractor_id: uuid.UUID,
    file_id: uuid.UUID,
    storage: Optional[StorageProvider] = None,
    actor_id: Optional[uuid.UUID] = None,
) -> uuid.UUID:
    with transaction(db):
        contractor = get_for_update(db, Contractor, contractor_id, ENTITY)
        documents = list(contractor.documents or [])
        if str(file_id) not in documents:
            raise NotFoundError("Contractor document", file_id)
        documents.remove(str(file_id))
        contractor.documents = documents
        keys = detach_file_objects(db, [file_id])
        create_audit_log(db, "contractor", contractor.id, "DETACH", actor_id=actor_id,
                         changes_json={"file_id": str(file_id)})
    release_blobs(storage, keys)
    logger.info("contractor_document_detached", contractor_id=str(contractor_id), file_id=str(file_id))
    return contractor_id


def delete_contractor(
    db: Session,
    contractor_id: uuid.UUID,
    storage: Optional[StorageProvider] = None,
    actor_id: Optional[uuid.UUID] = None,
) -> uuid.UUID:
    with transaction(db):
        contractor = get_for_update(db, Contractor, contractor_id, ENTITY)
        keys = detach_file_objects(db, contractor.documents or [])
        create_audit_log(db, "contractor", contractor.id, "DELETE", actor_id=actor_id,
                         changes_json={"company_name": contractor.company_name})
        db.delete(contractor)
    release_blobs(storage, keys)
    logger.info("contractor_deleted", contractor_id=str(contractor_id), blobs=len(keys))
    return contractor_id


def get_contractor(db: Session, contractor_id: uuid.UUID, storage: Optional[StorageProvider] = None) -> Optional[Dict]:
    contractor = get_by_id(db, Contractor, contractor_id)
    if not contractor:
        return None
    return _project(contractor, _resolver_for(db, [contractor], storage))


def list_contractors(
    db: Session,
    category: Optional[str] = None,
    rating: Optional[str] = None,
    is_active: Optional[bool] = None,
    storage: Optional[StorageProvider] = None,
) -> List[Dict]:
    rows = indexed_list(
        db,
        Contractor,
        {"rating": rating, "is_active": is_active, "category": category},
        ("rating", "is_active"),
        predicates={"category": lambda c, value: value in (c.categories or [])},
        order_by=Contractor.company_name,
    )
    resolver = _resolver_for(db, rows, storage)
    return [_project(c, resolver) for c in rows]


def get_contractor_stats(db: Session) -> Dict:
    rows = db.query(Contractor).all()
    active = sum(1 for c in rows if c.is_active)
    return {
        "total": len(rows),
        "active": active,
        "inactive": len(rows) - active,
        "by_category": count_many(rows, "categories"),
        "by_rating": count_by(rows, "rating"),
    }
