"""
Async Account Model
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from penpal.db import Base, BigIntPK


def utcnow():
    return datetime.now(timezone.utc)


class Account(Base):
    __tablename__ = "accounts"

    account_id = Column(BigIntPK, primary_key=True)
    descope_user_id = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, index=True, nullable=False)
    display_name = Column(String, nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)

    # Credit ledger
    digital_credits = Column(Integer, default=0, nullable=False)
    physical_credits = Column(Integer, default=0, nullable=False)
    daily_free_replies_used = Column(Integer, default=0, nullable=False)
    daily_reset_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships
    creatures = relationship("Creature", back_populates="account")
    purchases = relationship("CreditPurchase", back_populates="account")

    __table_args__ = (
        CheckConstraint("digital_credits >= 0", name="ck_accounts_digital_credits"),
        CheckConstraint("physical_credits >= 0", name="ck_accounts_physical_credits"),
        CheckConstraint(
            "daily_free_replies_used >= 0", name="ck_accounts_daily_free_replies"
        ),
    )


# Ensure dependent models are imported so SQLAlchemy can resolve string relationships
# when this module is imported directly (e.g., via auth dependencies).
from penpal.models import creature as _creature  # noqa: E402,F401
from penpal.models import purchase as _purchase  # noqa: E402,F401
