"""
Async Conversation and Message Models
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from penpal.db import Base, BigIntPK
from penpal.models.account import utcnow
from penpal.models.enums import (
    DeliveryType,
    MessageStatus,
    SenderType,
    enum_column,
)


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(BigIntPK, primary_key=True)
    creature_id = Column(BigIntPK, ForeignKey("creatures.id"), nullable=False)
    account_id = Column(BigIntPK, ForeignKey("accounts.account_id"), nullable=False, index=True)
    started_by = Column(String(16), default="user", nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_message_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    creature = relationship("Creature", back_populates="conversations")
    messages = relationship(
        "Message", back_populates="conversation", order_by="Message.created_at"
    )

    __table_args__ = (
        UniqueConstraint(
            "creature_id", "account_id", name="uq_conversations_creature_account"
        ),
    )


class Message(Base):
    __tablename__ = "messages"

    id = Column(BigIntPK, primary_key=True)
    conversation_id = Column(BigIntPK, ForeignKey("conversations.id"), nullable=False)
    sender_type = Column(enum_column(SenderType, "sender_type"), nullable=False)
    content = Column(Text, nullable=False)
    delivery_type = Column(enum_column(DeliveryType, "delivery_type"), nullable=False)
    status = Column(enum_column(MessageStatus, "message_status"), nullable=False)
    cost_credits = Column(Integer, default=0, nullable=False)
    scanned_image_url = Column(String, nullable=True)
    context_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    mailed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    conversation = relationship("Conversation", back_populates="messages")

    __table_args__ = (
        CheckConstraint("cost_credits >= 0", name="ck_messages_cost_credits"),
        Index("ix_messages_conversation_created", "conversation_id", "created_at"),
    )
