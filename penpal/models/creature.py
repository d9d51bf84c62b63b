"""
Async Creature Model
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from penpal.db import Base, BigIntPK
from penpal.models.account import utcnow
from penpal.models.enums import CreatureState, enum_column


class Creature(Base):
    __tablename__ = "creatures"

    id = Column(BigIntPK, primary_key=True)
    account_id = Column(BigIntPK, ForeignKey("accounts.account_id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    backstory = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    conversation_state = Column(
        enum_column(CreatureState, "creature_state"),
        default=CreatureState.IDLE,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="creatures")
    conversations = relationship("Conversation", back_populates="creature")


from penpal.models import letters as _letters  # noqa: E402,F401
