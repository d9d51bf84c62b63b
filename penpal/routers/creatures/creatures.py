"""Creatures Router - A user's pen-pal creatures."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from penpal.db import get_async_db
from penpal.dependencies import get_current_account
from penpal.models.account import Account

from .schemas import CreateCreatureRequest, CreatureResponse
from .service import (
    create_creature as service_create_creature,
    list_creatures as service_list_creatures,
)

router = APIRouter(prefix="/creatures", tags=["Creatures"])


@router.post("", response_model=CreatureResponse, status_code=status.HTTP_201_CREATED)
async def create_creature(
    request: CreateCreatureRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_async_db),
):
    return await service_create_creature(db, account=account, request=request)


@router.get("", response_model=List[CreatureResponse])
async def list_creatures(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_async_db),
):
    """List the current user's creatures, newest first."""
    return await service_list_creatures(db, account=account)
