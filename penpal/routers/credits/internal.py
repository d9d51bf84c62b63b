"""Internal Router - Scheduled jobs triggered by the platform cron."""

from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from penpal.db import get_async_db

from .schemas import ResetDailyRepliesResponse
from .service import reset_daily_replies as service_reset_daily_replies

router = APIRouter(prefix="/internal", tags=["Internal"])


@router.post("/reset-daily-replies", response_model=ResetDailyRepliesResponse)
async def reset_daily_replies(
    x_internal_secret: Optional[str] = Header(None, alias="X-Internal-Secret"),
    db: AsyncSession = Depends(get_async_db),
):
    return await service_reset_daily_replies(db, internal_secret=x_internal_secret)
