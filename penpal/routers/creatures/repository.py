"""Creatures repository layer."""

from sqlalchemy import desc, select


def create_creature(db, *, account_id: int, name: str, backstory=None, image_url=None):
    from penpal.models.creature import Creature
    from penpal.models.enums import CreatureState

    creature = Creature(
        account_id=account_id,
        name=name,
        backstory=backstory,
        image_url=image_url,
        conversation_state=CreatureState.IDLE,
    )
    db.add(creature)
    return creature


async def list_creatures_for_account(db, *, account_id: int):
    from penpal.models.creature import Creature

    stmt = (
        select(Creature)
        .where(Creature.account_id == account_id)
        .order_by(desc(Creature.created_at), desc(Creature.id))
    )
    result = await db.execute(stmt)
    return result.scalars().all()
