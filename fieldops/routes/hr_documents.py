import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..config import settings
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.hr_documents import HRDocumentCreate, HRDocumentResponse, HRDocumentStats, HRDocumentUpdate
from ..services import hr_documents as hr_service
from ..services.files import get_storage
from ..services.time_rules import Clock, get_clock
from ..storage.provider import StorageProvider


router = APIRouter(prefix="/hr-documents", tags=["hr-documents"])


@router.post("", response_model=IdResponse, status_code=201)
def create_document(payload: HRDocumentCreate, db: Session = Depends(get_db), actor: User = Depends(get_current_user)):
    return {"id": hr_service.create_hr_document(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[HRDocumentResponse])
def list_documents(
    user_id: Optional[uuid.UUID] = None,
    document_type: Optional[str] = None,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    clock: Clock = Depends(get_clock),
    _=Depends(get_current_user),
):
    return hr_service.list_hr_documents(db, user_id=user_id, document_type=document_type, storage=storage, clock=clock)


@router.get("/stats", response_model=HRDocumentStats)
def document_stats(db: Session = Depends(get_db), clock: Clock = Depends(get_clock), _=Depends(get_current_user)):
    return hr_service.get_hr_document_stats(db, clock=clock)


@router.get("/expiring", response_model=List[HRDocumentResponse])
def expiring_documents(
    days: Optional[int] = Query(default=None, ge=0),
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    clock: Clock = Depends(get_clock),
    _=Depends(get_current_user),
):
    if days is None:
        days = settings.expiry_notice_days
    return hr_service.get_expiring_documents(db, days=days, storage=storage, clock=clock)


@router.get("/expired", response_model=List[HRDocumentResponse])
def expired_documents(
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    clock: Clock = Depends(get_clock),
    _=Depends(get_current_user),
):
    return hr_service.get_expired_documents(db, storage=storage, clock=clock)


@router.get("/{doc_id}", response_model=HRDocumentResponse)
def get_document(
    doc_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    clock: Clock = Depends(get_clock),
    _=Depends(get_current_user),
):
    doc = hr_service.get_hr_document(db, doc_id, storage=storage, clock=clock)
    if not doc:
        raise HTTPException(status_code=404, detail="HR document not found")
    return doc


@router.patch("/{doc_id}", response_model=IdResponse)
def update_document(
    doc_id: uuid.UUID,
    payload: HRDocumentUpdate,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    actor: User = Depends(get_current_user),
):
    return {"id": hr_service.update_hr_document(db, doc_id, payload, actor_id=actor.id, storage=storage)}


@router.delete("/{doc_id}", response_model=IdResponse)
def delete_document(
    doc_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    actor: User = Depends(get_current_user),
):
    return {"id": hr_service.delete_hr_document(db, doc_id, storage=storage, actor_id=actor.id)}
