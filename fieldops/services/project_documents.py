import uuid
from typing import Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from ..errors import InvalidFieldError
from ..models.models import ProjectDocument
from ..schemas.project_documents import ProjectDocumentCreate, ProjectDocumentUpdate
from ..storage.provider import StorageProvider
from .audit import create_audit_log
from .crud import apply_patch, get_by_id, get_for_update, indexed_list, row_to_dict, transaction
from .enrichment import UNKNOWN, ReferenceResolver
from .files import check_file_refs, detach_file_objects, release_blobs
from .stats import count_by


logger = structlog.get_logger(__name__)

ENTITY = "Project document"
LIST_INDEXES = ("project_id", "document_type", "uploaded_by")


def _project(doc: ProjectDocument, resolver: ReferenceResolver) -> Dict:
    data = row_to_dict(doc)
    data["uploader_name"] = resolver.user_name(doc.uploaded_by, UNKNOWN)
    data["project_name"] = resolver.project_name(doc.project_id, UNKNOWN)
    data["file_url"] = resolver.file_url(doc.file_id)
    return data


def _project_all(db: Session, rows: List[ProjectDocument], storage: Optional[StorageProvider]) -> List[Dict]:
    resolver = ReferenceResolver(db, storage).load(
        user_ids=[d.uploaded_by for d in rows],
        project_ids=[d.project_id for d in rows],
        file_ids=[d.file_id for d in rows],
    )
    return [_project(d, resolver) for d in rows]


def create_project_document(
    db: Session, payload: ProjectDocumentCreate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump()
    data["uploaded_by"] = data.get("uploaded_by") or actor_id
    if data["uploaded_by"] is None:
        raise InvalidFieldError("uploaded_by", "is required")

    with transaction(db):
        check_file_refs(db, [data["file_id"]])
        doc = ProjectDocument(**data)
        db.add(doc)
        db.flush()
        create_audit_log(db, "project_document", doc.id, "CREATE", actor_id=actor_id,
                         changes_json={"project_id": doc.project_id, "file_id": doc.file_id})
        doc_id = doc.id
    logger.info("project_document_created", document_id=str(doc_id), project_id=str(data["project_id"]))
    return doc_id


def update_project_document(
    db: Session, doc_id: uuid.UUID, payload: ProjectDocumentUpdate, actor_id: Optional[uuid.UUID] = None
) -> uuid.UUID:
    data = payload.model_dump(exclude_unset=True)
    with transaction(db):
        doc = get_for_update(db, ProjectDocument, doc_id, ENTITY)
        changes = apply_patch(doc, data, protected=("file_id", "file_name", "uploaded_by"))
        create_audit_log(db, "project_document", doc.id, "UPDATE", actor_id=actor_id, changes_json=changes)
    logger.info("project_document_updated", document_id=str(doc_id), fields=sorted(data))
    return doc_id


def delete_project_document(
    db: Session,
    doc_id: uuid.UUID,
    storage: Optional[StorageProvider] = None,
    actor_id: Optional[uuid.UUID] = None,
) -> uuid.UUID:
    with transaction(db):
        doc = get_for_update(db, ProjectDocument, doc_id, ENTITY)
        keys = detach_file_objects(db, [doc.file_id])
        create_audit_log(db, "project_document", doc.id, "DELETE", actor_id=actor_id,
                         changes_json={"title": doc.title, "file_id": doc.file_id})
        db.delete(doc)
    release_blobs(storage, keys)
    logger.info("project_document_deleted", document_id=str(doc_id), blobs=len(keys))
    return doc_id


def get_project_document(
    db: Session, doc_id: uuid.UUID, storage: Optional[StorageProvider] = None
) -> Optional[Dict]:
    doc = get_by_id(db, ProjectDocument, doc_id)
    if not doc:
        return None
    return _project_all(db, [doc], storage)[0]


def list_project_documents(
    db: Session,
    project_id: Optional[uuid.UUID] = None,
    document_type: Optional[str] = None,
    uploaded_by: Optional[uuid.UUID] = None,
    storage: Optional[StorageProvider] = None,
) -> List[Dict]:
    rows = indexed_list(
        db,
        ProjectDocument,
        {"project_id": project_id, "document_type": document_type, "uploaded_by": uploaded_by},
        LIST_INDEXES,
        order_by=ProjectDocument.created_at.desc(),
    )
    return _project_all(db, rows, storage)


def get_documents_by_project(
    db: Session, project_id: uuid.UUID, storage: Optional[StorageProvider] = None
) -> List[Dict]:
    return list_project_documents(db, project_id=project_id, storage=storage)


def get_project_document_stats(db: Session) -> Dict:
    rows = db.query(ProjectDocument).all()
    resolver = ReferenceResolver(db).load(project_ids=[d.project_id for d in rows])
    return {
        "total": len(rows),
        "by_type": count_by(rows, "document_type"),
        "by_project": count_by(rows, lambda d: resolver.project_name(d.project_id, UNKNOWN)),
    }
