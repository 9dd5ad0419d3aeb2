"""
File registry: upload URL issuance, upload confirmation, URL resolution and
best-effort blob release.
"""
import os
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import structlog
from slugify import slugify
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import DuplicateKeyError, InvalidFieldError, NotFoundError
from ..models.models import Contractor, FileObject, HRDocument, ProjectDocument
from ..storage.blob_provider import BlobStorageProvider
from ..storage.local_provider import LocalStorageProvider
from ..storage.provider import StorageProvider
from .audit import create_audit_log
from .crud import transaction
from .enrichment import ReferenceResolver, as_uuid


logger = structlog.get_logger(__name__)


def get_storage() -> StorageProvider:
    """
    Get storage provider based on configuration.
    Uses BlobStorageProvider when Azure Blob is configured (or explicitly requested),
    LocalStorageProvider otherwise.
    """
    if settings.azure_blob_connection and settings.azure_blob_container:
        return BlobStorageProvider()
    if settings.storage_provider == "blob":
        logger.warning("blob_storage_not_configured", fallback="local")
    return LocalStorageProvider()


def canonical_key(
    project_code: Optional[str], slug: Optional[str], category: Optional[str], original_name: str
) -> str:
    today = datetime.utcnow().strftime("%Y-%m-%d")
    year = datetime.utcnow().strftime("%Y")
    safe_name = slugify(os.path.splitext(original_name)[0])
    ext = os.path.splitext(original_name)[1].lower()
    proj = slugify(project_code or "misc")
    folder = slugify(category or "files")
    slug_part = f"-{slugify(slug)}" if slug else ""
    # Short random suffix keeps repeated uploads of the same name from overwriting each other
    return f"/org/{year}/{proj}{slug_part}/{folder}/{today}_{safe_name}-{uuid.uuid4().hex[:8]}{ext}"


def request_upload(
    storage: StorageProvider,
    original_name: str,
    content_type: str,
    project_id: Optional[str] = None,
    category: Optional[str] = None,
) -> Dict:
    if not original_name or not original_name.strip():
        raise InvalidFieldError("original_name", "must not be empty")
    key = canonical_key(
        project_code=project_id or "misc",
        slug=None,
        category=category or "files",
        original_name=original_name,
    )
    expires = settings.upload_url_ttl_seconds
    url = storage.generate_upload_url(key, content_type, expires_s=expires)
    return {"key": key, "upload_url": url, "expires_in": expires}


def confirm_upload(
    db: Session,
    storage: StorageProvider,
    key: str,
    original_name: Optional[str] = None,
    content_type: Optional[str] = None,
    size_bytes: Optional[int] = None,
    checksum_sha256: Optional[str] = None,
    actor_id: Optional[uuid.UUID] = None,
) -> uuid.UUID:
    """Register an uploaded blob and return the FileObject id."""
    with transaction(db):
        fo = FileObject(
            provider=storage.name,
            container=storage.container,
            key=key,
            original_name=original_name or os.path.basename(key),
            content_type=content_type,
            size_bytes=size_bytes,
            checksum_sha256=checksum_sha256,
            created_by=actor_id,
        )
        db.add(fo)
        db.flush()
        create_audit_log(db, "file", fo.id, "CREATE", actor_id=actor_id, changes_json={"key": key})
        file_id = fo.id
    logger.info("file_confirmed", file_id=str(file_id), key=key, provider=storage.name)
    return file_id


def get_file_url(db: Session, storage: StorageProvider, file_id) -> Optional[str]:
    return ReferenceResolver(db, storage).file_url(file_id)


def get_file_urls(db: Session, storage: StorageProvider, file_ids: Iterable) -> Dict[str, Optional[str]]:
    ids = [i for i in file_ids if i is not None]
    resolver = ReferenceResolver(db, storage).load(file_ids=ids)
    return {str(i): resolver.file_url(i) for i in ids}


def detach_file_objects(db: Session, file_ids: Iterable) -> List[str]:
    """Delete FileObject rows inside the caller's transaction and return their blob keys."""
    keys = []
    wanted = [u for u in (as_uuid(i) for i in file_ids) if u is not None]
    if not wanted:
        return keys
    for fo in db.query(FileObject).filter(FileObject.id.in_(wanted)).all():
        keys.append(fo.key)
        db.delete(fo)
    return keys


def release_blobs(storage: Optional[StorageProvider], keys: Iterable[str]) -> None:
    """Delete blobs after their records are gone. Failures are logged, never raised."""
    if storage is None:
        return
    for key in keys:
        try:
            storage.delete(key)
        except Exception as e:
            logger.warning("blob_delete_failed", key=key, error=str(e))


def _other_file_owners(db: Session, file_id: uuid.UUID, owner=None) -> bool:
    for model in (HRDocument, ProjectDocument):
        query = db.query(model.id).filter(model.file_id == file_id)
        if isinstance(owner, model):
            query = query.filter(model.id != owner.id)
        if query.first() is not None:
            return True
    for contractor_id, documents in db.query(Contractor.id, Contractor.documents).all():
        if isinstance(owner, Contractor) and contractor_id == owner.id:
            continue
        if str(file_id) in (documents or []):
            return True
    return False


def check_file_refs(db: Session, file_ids: Iterable, owner=None) -> List[uuid.UUID]:
    """
    Validate files a record is about to own and return their ids, deduplicated.

    Each id must name a registered FileObject that no record other than
    ``owner`` references: a file has at most one owning record.
    """
    checked: List[uuid.UUID] = []
    for value in file_ids:
        file_id = as_uuid(value)
        if file_id is None or db.query(FileObject.id).filter(FileObject.id == file_id).first() is None:
            raise NotFoundError("File", value)
        if file_id in checked:
            continue
        if _other_file_owners(db, file_id, owner):
            raise DuplicateKeyError("File", "file_id", file_id)
        checked.append(file_id)
    return checked
