import io
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, Response
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.common import IdResponse
from ..schemas.files import ConfirmRequest, FileUrlResponse, UploadRequest, UploadResponse
from ..services import files as file_service
from ..services.files import get_storage
from ..storage.local_provider import LocalStorageProvider
from ..storage.provider import StorageProvider


router = APIRouter(prefix="/files", tags=["files"])


@router.post("/upload", response_model=UploadResponse)
def upload(
    req: UploadRequest,
    storage: StorageProvider = Depends(get_storage),
    _=Depends(get_current_user),
):
    return file_service.request_upload(
        storage,
        original_name=req.original_name,
        content_type=req.content_type,
        project_id=req.project_id,
        category=req.category,
    )


@router.post("/confirm", response_model=IdResponse, status_code=201)
def confirm(
    req: ConfirmRequest,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    actor: User = Depends(get_current_user),
):
    file_id = file_service.confirm_upload(
        db,
        storage,
        key=req.key,
        original_name=req.original_name,
        content_type=req.content_type,
        size_bytes=req.size_bytes,
        checksum_sha256=req.checksum_sha256,
        actor_id=actor.id,
    )
    return {"id": file_id}


@router.get("/{file_id}/url", response_model=FileUrlResponse)
def file_url(
    file_id: uuid.UUID,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    _=Depends(get_current_user),
):
    return {"id": file_id, "url": file_service.get_file_url(db, storage, file_id)}


@router.put("/local/{key:path}", status_code=204)
async def local_upload(
    key: str,
    request: Request,
    storage: StorageProvider = Depends(get_storage),
    _=Depends(get_current_user),
):
    """Development counterpart of a signed blob upload URL."""
    if not isinstance(storage, LocalStorageProvider):
        raise HTTPException(status_code=404, detail="Not found")
    storage.copy_in(io.BytesIO(await request.body()), key)
    return Response(status_code=204)


@router.get("/local/{key:path}")
def local_download(key: str, storage: StorageProvider = Depends(get_storage)):
    if not isinstance(storage, LocalStorageProvider) or not storage.exists(key):
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(storage.local_path(key))
