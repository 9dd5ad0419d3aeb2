import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.project_documents import (
    ProjectDocumentCreate,
    ProjectDocumentResponse,
    ProjectDocumentStats,
    ProjectDocumentUpdate,
)
from ..services import project_documents as document_service
from ..services.files import get_storage
from ..storage.provider import StorageProvider


router = APIRouter(prefix="/project-documents", tags=["project-documents"])


@router.post("", response_model=IdResponse, status_code=201)
def create_document(
    payload: ProjectDocumentCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": document_service.create_project_document(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[ProjectDocumentResponse])
def list_documents(
    project_id: Optional[uuid.UUID] = None,
    document_type: Optional[str] = None,
    uploaded_by: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    _=Depends(get_current_user),
):
    return document_service.list_project_documents(
        db, project_id=project_id, document_type=document_type, uploaded_by=uploaded_by, storage=storage
    )


@router.get("/stats", response_model=ProjectDocumentStats)
def document_stats(db: Session = Depends(get_db), _=Depends(get_current_user)):
    return document_service.get_project_document_stats(db)


@router.get("/{doc_id}", response_model=ProjectDocumentResponse)
def get_document(
    doc_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    _=Depends(get_current_user),
):
    doc = document_service.get_project_document(db, doc_id, storage=storage)
    if not doc:
        raise HTTPException(status_code=404, detail="Project document not found")
    return doc


@router.patch("/{doc_id}", response_model=IdResponse)
def update_document(
    doc_id: uuid.UUID,
    payload: ProjectDocumentUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": document_service.update_project_document(db, doc_id, payload, actor_id=actor.id)}


@router.delete("/{doc_id}", response_model=IdResponse)
def delete_document(
    doc_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    actor: User = Depends(get_current_user),
):
    return {"id": document_service.delete_project_document(db, doc_id, storage=storage, actor_id=actor.id)}
