"""Uploads Router - Creature portraits and scanned letters."""

from fastapi import APIRouter, Depends, File, Query, UploadFile

from core.ports.storage import BlobStorePort
from penpal.dependencies import get_blob_store, get_current_account
from penpal.models.account import Account

from .schemas import ImageUploadResponse
from .service import upload_image as service_upload_image

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post("/images", response_model=ImageUploadResponse)
async def upload_image(
    kind: str = Query(..., description="creature or scan"),
    file: UploadFile = File(...),
    account: Account = Depends(get_current_account),
    store: BlobStorePort = Depends(get_blob_store),
):
    """
    Upload an image (max 10MB).

    - creature: portrait for a creature
    - scan: scanned physical letter (admins only)
    """
    return await service_upload_image(account=account, kind=kind, file=file, store=store)
