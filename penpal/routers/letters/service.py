"""Conversations/Letters service layer."""

import asyncio
import logging

from sqlalchemy.exc import IntegrityError

import core.config as config
from penpal.errors import ConflictingState, GenerationFailed, NotFound
from penpal.models.account import utcnow
from penpal.models.enums import (
    MESSAGE_STATUS_TRANSITIONS,
    CreatureState,
    DeliveryType,
    MessageStatus,
    SenderType,
    can_transition,
)
from penpal.services import ledger_service
from penpal.services.entitlement import require_entitlement
from penpal.services.letter_prompt import build_letter_prompt

from . import repository as letters_repository
from .schemas import (
    AdminConversationResponse,
    AdminMessageResponse,
    ConversationResponse,
    GenerateLetterResponse,
    MessageListResponse,
    MessageResponse,
    PendingPhysicalLetterResponse,
)

logger = logging.getLogger(__name__)

# A lost race on the ledger update is retried this many times in total
PERSIST_ATTEMPTS = 2


def _value(enum_or_str):
    return getattr(enum_or_str, "value", enum_or_str)


def _iso(dt):
    return dt.isoformat() if dt else None


def _message_fields(message) -> dict:
    return dict(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_type=_value(message.sender_type),
        content=message.content,
        delivery_type=_value(message.delivery_type),
        status=_value(message.status),
        cost_credits=message.cost_credits,
        scanned_image_url=message.scanned_image_url,
        context_notes=message.context_notes,
        mailed_at=_iso(message.mailed_at),
        created_at=_iso(message.created_at),
    )


def message_response(message) -> MessageResponse:
    return MessageResponse(**_message_fields(message))


def admin_message_response(message) -> AdminMessageResponse:
    return AdminMessageResponse(**_message_fields(message), admin_notes=message.admin_notes)


def _conversation_response(conversation, *, created: bool) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        creature_id=conversation.creature_id,
        account_id=conversation.account_id,
        started_by=conversation.started_by,
        created_at=_iso(conversation.created_at),
        last_message_at=_iso(conversation.last_message_at),
        created=created,
    )


async def start_conversation_or_fetch(db, *, account, creature_id: int) -> ConversationResponse:
    account_id = account.account_id

    creature = await letters_repository.get_creature_for_account(
        db, creature_id=creature_id, account_id=account_id
    )
    if not creature:
        raise NotFound(f"Creature {creature_id} not found")

    existing = await letters_repository.get_conversation(
        db, creature_id=creature_id, account_id=account_id
    )
    if existing:
        return _conversation_response(existing, created=False)

    conversation = letters_repository.create_conversation(
        db, creature_id=creature_id, account_id=account_id
    )
    try:
        await db.flush()
        await letters_repository.set_creature_state(
            db, creature_id=creature_id, state=CreatureState.WAITING_FOR_LETTER
        )
        await db.commit()
    except IntegrityError:
        # Another request created it first
        await db.rollback()
        existing = await letters_repository.get_conversation(
            db, creature_id=creature_id, account_id=account_id
        )
        if not existing:
            raise
        return _conversation_response(existing, created=False)

    logger.info(
        f"Conversation {conversation.id} started: account={account_id}, creature={creature_id}"
    )
    return _conversation_response(conversation, created=True)


async def list_messages(db, *, account, conversation_id: int) -> MessageListResponse:
    conversation = await letters_repository.get_conversation_by_id(
        db, conversation_id=conversation_id
    )
    if not conversation or (
        conversation.account_id != account.account_id and not account.is_admin
    ):
        raise NotFound(f"Conversation {conversation_id} not found")

    creature = await letters_repository.get_creature(db, creature_id=conversation.creature_id)
    messages = await letters_repository.list_messages(db, conversation_id=conversation_id)
    return MessageListResponse(
        conversation_id=conversation.id,
        creature_id=conversation.creature_id,
        creature_state=_value(creature.conversation_state),
        messages=[message_response(m) for m in messages],
    )


async def generate_letter(db, *, account, conversation_id: int, request, generator) -> GenerateLetterResponse:
    """
    Write a creature reply and charge for it.

    The user's new letter (if any) is saved before the model is called and
    survives a generation failure. The reply and its charge are committed in
    one transaction; if a concurrent request spent the balance first, the
    entitlement is re-evaluated and the write retried once. A call that
    straddles UTC midnight is re-evaluated against the new day before writing.
    """
    account_id = account.account_id
    delivery_type = DeliveryType(request.delivery_type)

    conversation = await letters_repository.get_conversation_by_id(
        db, conversation_id=conversation_id
    )
    if (
        not conversation
        or conversation.account_id != account_id
        or conversation.creature_id != request.creature_id
    ):
        raise NotFound(f"Conversation {conversation_id} not found")

    creature = await letters_repository.get_creature(db, creature_id=conversation.creature_id)
    if not creature:
        raise NotFound(f"Creature {request.creature_id} not found")
    creature_id = creature.id
    history = await letters_repository.list_messages(db, conversation_id=conversation_id)

    today = ledger_service.utc_today()
    snapshot = await ledger_service.get_snapshot(db, account_id)
    entitlement = require_entitlement(snapshot, delivery_type, today=today)

    prompt = build_letter_prompt(
        creature_name=creature.name,
        backstory=creature.backstory,
        messages=history,
        delivery_type=delivery_type,
        user_message=request.user_message,
        context_notes=request.context_notes,
    )

    if request.user_message:
        letters_repository.add_message(
            db,
            conversation_id=conversation_id,
            sender_type=SenderType.USER,
            content=request.user_message,
            delivery_type=DeliveryType.DIGITAL,
            status=MessageStatus.SENT,
            cost_credits=0,
            created_at=utcnow(),
        )
    # Ends the read transaction too; nothing is held open across the model call
    await db.commit()

    try:
        content = await asyncio.wait_for(
            generator.generate_letter(prompt),
            timeout=config.LETTER_GENERATION_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as e:
        logger.error(f"Letter generation timed out for conversation {conversation_id}")
        raise GenerationFailed("Letter generation timed out") from e

    if not content or not content.strip():
        logger.error(f"Letter generation returned no text for conversation {conversation_id}")
        raise GenerationFailed("Letter generation returned no text")

    reply_status = (
        MessageStatus.PENDING_PHYSICAL
        if delivery_type == DeliveryType.PHYSICAL
        else MessageStatus.SENT
    )

    reply = None
    for attempt in range(1, PERSIST_ATTEMPTS + 1):
        # The free allowance is charged to the day the reply is written
        current_day = ledger_service.utc_today()
        if current_day != today:
            logger.info(
                f"Day rolled over during generation: conversation={conversation_id}, "
                f"from={today}, to={current_day}"
            )
            today = current_day
            snapshot = await ledger_service.get_snapshot(db, account_id)
            entitlement = require_entitlement(snapshot, delivery_type, today=today)

        now = utcnow()
        candidate = letters_repository.add_message(
            db,
            conversation_id=conversation_id,
            sender_type=SenderType.CREATURE,
            content=content.strip(),
            delivery_type=delivery_type,
            status=reply_status,
            cost_credits=entitlement.cost,
            created_at=now,
            context_notes=request.context_notes,
        )
        if await ledger_service.apply_entitlement(db, account_id, entitlement, today=today):
            await letters_repository.touch_conversation(
                db, conversation_id=conversation_id, at=now
            )
            await letters_repository.set_creature_state(
                db, creature_id=creature_id, state=CreatureState.WAITING_FOR_LETTER
            )
            await db.commit()
            reply = candidate
            break

        await db.rollback()
        logger.warning(
            f"Ledger update lost a race: account={account_id}, "
            f"conversation={conversation_id}, attempt={attempt}"
        )
        snapshot = await ledger_service.get_snapshot(db, account_id)
        entitlement = require_entitlement(snapshot, delivery_type, today=today)

    if reply is None:
        # Still entitled on the last re-read, yet every write lost
        raise ConflictingState()

    snapshot = await ledger_service.get_snapshot(db, account_id)
    logger.info(
        f"Letter generated: conversation={conversation_id}, message={reply.id}, "
        f"delivery={delivery_type.value}, cost={entitlement.cost}, "
        f"free={entitlement.uses_free_allowance}"
    )
    return GenerateLetterResponse(
        message=message_response(reply),
        cost_credits=entitlement.cost,
        used_free_reply=entitlement.uses_free_allowance,
        digital_credits=snapshot.digital_credits,
        physical_credits=snapshot.physical_credits,
        free_replies_remaining=snapshot.free_replies_remaining(today),
    )


async def digitize_physical_letter(
    db,
    *,
    conversation_id: int,
    letter_content: str,
    scanned_image_url=None,
    admin_notes=None,
) -> AdminMessageResponse:
    """Record a letter that arrived by post. No entitlement check, never charged."""
    conversation = await letters_repository.get_conversation_by_id(
        db, conversation_id=conversation_id
    )
    if not conversation:
        raise NotFound(f"Conversation {conversation_id} not found")
    creature_id = conversation.creature_id

    now = utcnow()
    message = letters_repository.add_message(
        db,
        conversation_id=conversation_id,
        sender_type=SenderType.USER,
        content=letter_content,
        delivery_type=DeliveryType.PHYSICAL,
        status=MessageStatus.RECEIVED,
        cost_credits=0,
        created_at=now,
        scanned_image_url=scanned_image_url,
        admin_notes=admin_notes,
    )
    await letters_repository.touch_conversation(db, conversation_id=conversation_id, at=now)
    moved = await letters_repository.set_creature_state(
        db, creature_id=creature_id, state=CreatureState.PENDING_RESPONSE
    )
    if not moved:
        await db.rollback()
        raise ConflictingState(f"Creature {creature_id} cannot await a reply from its current state")

    await db.commit()
    logger.info(f"Physical letter digitized: conversation={conversation_id}, message={message.id}")
    return admin_message_response(message)


async def list_recent_conversations(db, *, limit: int = 20):
    rows = await letters_repository.list_recent_conversations(db, limit=limit)
    return [
        AdminConversationResponse(
            id=conversation.id,
            creature_id=creature.id,
            creature_name=creature.name,
            creature_state=_value(creature.conversation_state),
            account_id=account.account_id,
            account_email=account.email,
            last_message_at=_iso(conversation.last_message_at),
        )
        for conversation, creature, account in rows
    ]


async def list_pending_physical_letters(db):
    rows = await letters_repository.list_pending_physical_letters(db)
    return [
        PendingPhysicalLetterResponse(
            message=admin_message_response(message),
            creature_name=creature.name,
            account_id=account.account_id,
            account_email=account.email,
        )
        for message, creature, account in rows
    ]


async def mark_letter_mailed(db, *, message_id: int) -> AdminMessageResponse:
    message = await letters_repository.get_message(db, message_id=message_id)
    if not message:
        raise NotFound(f"Message {message_id} not found")

    current = MessageStatus(_value(message.status))
    if not can_transition(MESSAGE_STATUS_TRANSITIONS, current, MessageStatus.MAILED):
        raise ConflictingState(f"Message {message_id} is {current.value}, not pending_physical")

    if not await letters_repository.mark_message_mailed(db, message_id=message_id, at=utcnow()):
        await db.rollback()
        raise ConflictingState(f"Message {message_id} was already mailed")

    await db.commit()
    await db.refresh(message)
    logger.info(f"Physical letter mailed: message={message_id}")
    return admin_message_response(message)
