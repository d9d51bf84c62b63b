"""Conversations Router - Letters between a user and their creatures."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.ports.generation import LetterGeneratorPort
from penpal.db import get_async_db
from penpal.dependencies import get_current_account, get_letter_generator
from penpal.models.account import Account

from .schemas import (
    ConversationResponse,
    GenerateLetterRequest,
    GenerateLetterResponse,
    MessageListResponse,
    StartConversationRequest,
)
from .service import (
    generate_letter as service_generate_letter,
    list_messages as service_list_messages,
    start_conversation_or_fetch as service_start_conversation_or_fetch,
)

router = APIRouter(prefix="/conversations", tags=["Conversations"])


@router.post("", response_model=ConversationResponse)
async def start_conversation(
    request: StartConversationRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Return the caller's conversation with a creature, creating it on first use.
    """
    return await service_start_conversation_or_fetch(
        db, account=account, creature_id=request.creature_id
    )


@router.get("/{conversation_id}/messages", response_model=MessageListResponse)
async def list_messages(
    conversation_id: int,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_async_db),
):
    return await service_list_messages(db, account=account, conversation_id=conversation_id)


@router.post("/{conversation_id}/letters", response_model=GenerateLetterResponse)
async def generate_letter(
    conversation_id: int,
    request: GenerateLetterRequest,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_async_db),
    generator: LetterGeneratorPort = Depends(get_letter_generator),
):
    """
    Send a letter (optional) and get the creature's reply.

    - Digital replies are free twice a day, then cost one digital credit
    - Physical replies cost one physical credit and are queued for printing
    """
    return await service_generate_letter(
        db,
        account=account,
        conversation_id=conversation_id,
        request=request,
        generator=generator,
    )
