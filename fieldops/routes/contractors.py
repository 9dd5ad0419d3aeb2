import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, require_roles
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.contractors import (
    ContractorCreate,
    ContractorRating,
    ContractorResponse,
    ContractorStats,
    ContractorUpdate,
)
from ..services import contractors as contractor_service
from ..services.files import get_storage
from ..storage.provider import StorageProvider


router = APIRouter(prefix="/contractors", tags=["contractors"])

managers = require_roles("admin", "manager")


@router.post("", response_model=IdResponse, status_code=201)
def create_contractor(
    payload: ContractorCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": contractor_service.create_contractor(db, payload, actor_id=actor.id)}


@router.get("", response_model=List[ContractorResponse])
def list_contractors(
    category: Optional[str] = None,
    rating: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    _=Depends(get_current_user),
):
    return contractor_service.list_contractors(
        db, category=category, rating=rating, is_active=is_active, storage=storage
    )


@router.get("/stats", response_model=ContractorStats)
def contractor_stats(db: Session = Depends(get_db), _=Depends(get_current_user)):
    return contractor_service.get_contractor_stats(db)


@router.get("/{contractor_id}", response_model=ContractorResponse)
def get_contractor(
    contractor_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    _=Depends(get_current_user),
):
    contractor = contractor_service.get_contractor(db, contractor_id, storage=storage)
    if not contractor:
        raise HTTPException(status_code=404, detail="Contractor not found")
    return contractor


@router.patch("/{contractor_id}", response_model=IdResponse)
def update_contractor(
    contractor_id: uuid.UUID,
    payload: ContractorUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": contractor_service.update_contractor(db, contractor_id, payload, actor_id=actor.id)}


@router.delete("/{contractor_id}", response_model=IdResponse)
def delete_contractor(
    contractor_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    actor: User = Depends(managers),
):
    return {"id": contractor_service.delete_contractor(db, contractor_id, storage=storage, actor_id=actor.id)}


@router.post("/{contractor_id}/rate", response_model=IdResponse)
def rate_contractor(
    contractor_id: uuid.UUID,
    payload: ContractorRating,
    db: Session = Depends(get_db),
    actor: User = Depends(managers),
):
    return {"id": contractor_service.rate_contractor(db, contractor_id, payload.rating, actor_id=actor.id)}


@router.post("/{contractor_id}/deactivate", response_model=IdResponse)
def deactivate_contractor(
    contractor_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: User = Depends(managers),
):
    return {"id": contractor_service.deactivate_contractor(db, contractor_id, actor_id=actor.id)}


@router.post("/{contractor_id}/reactivate", response_model=IdResponse)
def reactivate_contractor(
    contractor_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: User = Depends(managers),
):
    return {"id": contractor_service.reactivate_contractor(db, contractor_id, actor_id=actor.id)}


@router.post("/{contractor_id}/documents/{file_id}", response_model=IdResponse)
def attach_document(
    contractor_id: uuid.UUID,
    file_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
):
    return {"id": contractor_service.attach_contractor_document(db, contractor_id, file_id, actor_id=actor.id)}


@router.delete("/{contractor_id}/documents/{file_id}", response_model=IdResponse)
def detach_document(
    contractor_id: uuid.UUID,
    file_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    actor: User = Depends(get_current_user),
):
    return {
        "id": contractor_service.detach_contractor_document(
            db, contractor_id, file_id, storage=storage, actor_id=actor.id
        )
    }
