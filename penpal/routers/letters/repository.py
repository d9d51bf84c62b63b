"""Conversations/Letters repository layer."""

from sqlalchemy import desc, select, update


async def get_creature(db, *, creature_id: int):
    from penpal.models.creature import Creature

    stmt = select(Creature).where(Creature.id == creature_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_creature_for_account(db, *, creature_id: int, account_id: int):
    from penpal.models.creature import Creature

    stmt = select(Creature).where(
        Creature.id == creature_id, Creature.account_id == account_id
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_conversation(db, *, creature_id: int, account_id: int):
    from penpal.models.letters import Conversation

    stmt = select(Conversation).where(
        Conversation.creature_id == creature_id,
        Conversation.account_id == account_id,
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_conversation_by_id(db, *, conversation_id: int):
    from penpal.models.letters import Conversation

    stmt = select(Conversation).where(Conversation.id == conversation_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def create_conversation(db, *, creature_id: int, account_id: int, started_by: str = "user"):
    from penpal.models.letters import Conversation

    conversation = Conversation(
        creature_id=creature_id,
        account_id=account_id,
        started_by=started_by,
    )
    db.add(conversation)
    return conversation


async def list_messages(db, *, conversation_id: int):
    from penpal.models.letters import Message

    stmt = (
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at, Message.id)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


def add_message(
    db,
    *,
    conversation_id: int,
    sender_type,
    content: str,
    delivery_type,
    status,
    cost_credits: int,
    created_at,
    scanned_image_url=None,
    context_notes=None,
    admin_notes=None,
):
    from penpal.models.letters import Message

    message = Message(
        conversation_id=conversation_id,
        sender_type=sender_type,
        content=content,
        delivery_type=delivery_type,
        status=status,
        cost_credits=cost_credits,
        scanned_image_url=scanned_image_url,
        context_notes=context_notes,
        admin_notes=admin_notes,
        created_at=created_at,
    )
    db.add(message)
    return message


async def get_message(db, *, message_id: int):
    from penpal.models.letters import Message

    stmt = select(Message).where(Message.id == message_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def touch_conversation(db, *, conversation_id: int, at) -> None:
    from penpal.models.letters import Conversation

    stmt = (
        update(Conversation)
        .where(Conversation.id == conversation_id)
        .values(last_message_at=at)
        .execution_options(synchronize_session=False)
    )
    await db.execute(stmt)


async def set_creature_state(db, *, creature_id: int, state) -> bool:
    """Move a creature to ``state`` only from a state that allows it."""
    from penpal.models.creature import Creature
    from penpal.models.enums import creature_states_leading_to

    stmt = (
        update(Creature)
        .where(Creature.id == creature_id)
        .where(Creature.conversation_state.in_(creature_states_leading_to(state)))
        .values(conversation_state=state)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def mark_message_mailed(db, *, message_id: int, at) -> bool:
    from penpal.models.enums import MessageStatus
    from penpal.models.letters import Message

    stmt = (
        update(Message)
        .where(Message.id == message_id)
        .where(Message.status == MessageStatus.PENDING_PHYSICAL)
        .values(status=MessageStatus.MAILED, mailed_at=at)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def list_recent_conversations(db, *, limit: int = 20):
    from penpal.models.account import Account
    from penpal.models.creature import Creature
    from penpal.models.letters import Conversation

    stmt = (
        select(Conversation, Creature, Account)
        .join(Creature, Conversation.creature_id == Creature.id)
        .join(Account, Conversation.account_id == Account.account_id)
        .order_by(desc(Conversation.last_message_at), desc(Conversation.id))
        .limit(limit)
    )
    result = await db.execute(stmt)
    return result.all()


async def list_pending_physical_letters(db):
    from penpal.models.account import Account
    from penpal.models.creature import Creature
    from penpal.models.enums import MessageStatus
    from penpal.models.letters import Conversation, Message

    stmt = (
        select(Message, Creature, Account)
        .join(Conversation, Message.conversation_id == Conversation.id)
        .join(Creature, Conversation.creature_id == Creature.id)
        .join(Account, Conversation.account_id == Account.account_id)
        .where(Message.status == MessageStatus.PENDING_PHYSICAL)
        .order_by(Message.created_at, Message.id)
    )
    result = await db.execute(stmt)
    return result.all()
