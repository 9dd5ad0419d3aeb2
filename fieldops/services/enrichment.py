"""
Batched reference resolution for read paths.

A resolver is primed with every id a page of records points at, issues one
``IN`` query per referenced table, and then answers display lookups from its
cache. Missing targets resolve to None so callers can choose a placeholder;
resolution never raises.
"""
import uuid
from typing import Any, Dict, Iterable, Optional

import structlog
from sqlalchemy.orm import Session

from ..config import settings
from ..models.models import FileObject, Project, User
from ..storage.provider import StorageProvider


logger = structlog.get_logger(__name__)

UNKNOWN = "Unknown"


def as_uuid(value: Any) -> Optional[uuid.UUID]:
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class ReferenceResolver:
    def __init__(self, db: Session, storage: Optional[StorageProvider] = None):
        self.db = db
        self.storage = storage
        self._users: Dict[uuid.UUID, Optional[User]] = {}
        self._projects: Dict[uuid.UUID, Optional[Project]] = {}
        self._files: Dict[uuid.UUID, Optional[FileObject]] = {}
        self._urls: Dict[uuid.UUID, Optional[str]] = {}

    def load(
        self,
        user_ids: Iterable[Any] = (),
        project_ids: Iterable[Any] = (),
        file_ids: Iterable[Any] = (),
    ) -> "ReferenceResolver":
        self._fetch(User, user_ids, self._users)
        self._fetch(Project, project_ids, self._projects)
        self._fetch(FileObject, file_ids, self._files)
        return self

    def _fetch(self, model, ids: Iterable[Any], cache: Dict) -> None:
        wanted = set()
        for value in ids:
            key = as_uuid(value)
            if key is not None and key not in cache:
                wanted.add(key)
        if not wanted:
            return
        rows = self.db.query(model).filter(model.id.in_(wanted)).all()
        found = {row.id: row for row in rows}
        for key in wanted:
            cache[key] = found.get(key)

    def _get(self, model, value: Any, cache: Dict):
        key = as_uuid(value)
        if key is None:
            return None
        if key not in cache:
            self._fetch(model, [key], cache)
        return cache.get(key)

    def user(self, user_id: Any) -> Optional[User]:
        return self._get(User, user_id, self._users)

    def project(self, project_id: Any) -> Optional[Project]:
        return self._get(Project, project_id, self._projects)

    def file(self, file_id: Any) -> Optional[FileObject]:
        return self._get(FileObject, file_id, self._files)

    def user_name(self, user_id: Any, default: Optional[str] = None) -> Optional[str]:
        user = self.user(user_id)
        return user.full_name if user else default

    def project_name(self, project_id: Any, default: Optional[str] = None) -> Optional[str]:
        project = self.project(project_id)
        return project.name if project else default

    def file_url(self, file_id: Any) -> Optional[str]:
        key = as_uuid(file_id)
        if key is None:
            return None
        if key in self._urls:
            return self._urls[key]
        fo = self.file(key)
        url = None
        if fo is not None and self.storage is not None:
            try:
                url = self.storage.get_download_url(fo.key, settings.download_url_ttl_seconds)
            except Exception as e:
                logger.warning("file_url_unresolved", file_id=str(key), error=str(e))
        self._urls[key] = url
        return url
