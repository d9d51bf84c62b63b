"""Admin Letters Router - Physical mail desk for administrators."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from penpal.db import get_async_db
from penpal.dependencies import get_admin_account
from penpal.models.account import Account

from .schemas import (
    AdminConversationResponse,
    AdminMessageResponse,
    DigitizeLetterRequest,
    PendingPhysicalLetterResponse,
)
from .service import (
    digitize_physical_letter as service_digitize_physical_letter,
    list_pending_physical_letters as service_list_pending_physical_letters,
    list_recent_conversations as service_list_recent_conversations,
    mark_letter_mailed as service_mark_letter_mailed,
)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/letters/digitize", response_model=AdminMessageResponse)
async def digitize_letter(
    request: DigitizeLetterRequest,
    admin: Account = Depends(get_admin_account),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Record a handwritten letter received by post.

    The creature is then marked as awaiting its reply.
    """
    return await service_digitize_physical_letter(
        db,
        conversation_id=request.conversation_id,
        letter_content=request.letter_content,
        scanned_image_url=request.scanned_image_url,
        admin_notes=request.admin_notes,
    )


@router.get("/conversations", response_model=List[AdminConversationResponse])
async def list_recent_conversations(
    limit: int = Query(20, ge=1, le=100),
    admin: Account = Depends(get_admin_account),
    db: AsyncSession = Depends(get_async_db),
):
    return await service_list_recent_conversations(db, limit=limit)


@router.get("/letters/pending-physical", response_model=List[PendingPhysicalLetterResponse])
async def list_pending_physical_letters(
    admin: Account = Depends(get_admin_account),
    db: AsyncSession = Depends(get_async_db),
):
    """Physical replies waiting to be printed and posted, oldest first."""
    return await service_list_pending_physical_letters(db)


@router.post("/letters/{message_id}/mailed", response_model=AdminMessageResponse)
async def mark_letter_mailed(
    message_id: int,
    admin: Account = Depends(get_admin_account),
    db: AsyncSession = Depends(get_async_db),
):
    return await service_mark_letter_mailed(db, message_id=message_id)
