"""
Closed value sets stored on letters, creatures and purchases.
"""

import enum

from sqlalchemy import Enum as SAEnum


class DeliveryType(str, enum.Enum):
    DIGITAL = "digital"
    PHYSICAL = "physical"


class SenderType(str, enum.Enum):
    USER = "user"
    CREATURE = "creature"


class MessageStatus(str, enum.Enum):
    SENT = "sent"
    PENDING_PHYSICAL = "pending_physical"
    MAILED = "mailed"
    RECEIVED = "received"


class CreatureState(str, enum.Enum):
    IDLE = "idle"
    WAITING_FOR_LETTER = "waiting_for_letter"
    PENDING_RESPONSE = "pending_response"


class PurchaseStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


# Messages are immutable apart from a physical reply being mailed
MESSAGE_STATUS_TRANSITIONS = {
    MessageStatus.SENT: frozenset(),
    MessageStatus.PENDING_PHYSICAL: frozenset({MessageStatus.MAILED}),
    MessageStatus.MAILED: frozenset(),
    MessageStatus.RECEIVED: frozenset(),
}

CREATURE_STATE_TRANSITIONS = {
    CreatureState.IDLE: frozenset({CreatureState.WAITING_FOR_LETTER}),
    CreatureState.WAITING_FOR_LETTER: frozenset(
        {CreatureState.WAITING_FOR_LETTER, CreatureState.PENDING_RESPONSE}
    ),
    CreatureState.PENDING_RESPONSE: frozenset(
        {CreatureState.PENDING_RESPONSE, CreatureState.WAITING_FOR_LETTER}
    ),
}

PURCHASE_STATUS_TRANSITIONS = {
    PurchaseStatus.PENDING: frozenset({PurchaseStatus.COMPLETED}),
    PurchaseStatus.COMPLETED: frozenset(),
}


def can_transition(table, current, target) -> bool:
    return target in table.get(current, frozenset())


def creature_states_leading_to(target: CreatureState):
    """States from which a creature may move to ``target``."""
    return [
        state
        for state, targets in CREATURE_STATE_TRANSITIONS.items()
        if target in targets
    ]


def enum_column(enum_cls, name: str):
    """VARCHAR column type holding the enum's values, with a CHECK constraint."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )
