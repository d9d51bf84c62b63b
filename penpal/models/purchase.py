"""
Async Credit Purchase Model
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from penpal.db import Base, BigIntPK
from penpal.models.account import utcnow
from penpal.models.enums import DeliveryType, PurchaseStatus, enum_column


class CreditPurchase(Base):
    __tablename__ = "credit_purchases"

    id = Column(BigIntPK, primary_key=True)
    account_id = Column(BigIntPK, ForeignKey("accounts.account_id"), nullable=False, index=True)
    credit_type = Column(enum_column(DeliveryType, "credit_type"), nullable=False)
    credits_requested = Column(Integer, nullable=False)
    amount_paid_minor = Column(Integer, nullable=False)
    currency = Column(String(8), default="usd", nullable=False)
    stripe_session_id = Column(String, unique=True, index=True, nullable=False)
    status = Column(
        enum_column(PurchaseStatus, "purchase_status"),
        default=PurchaseStatus.PENDING,
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    account = relationship("Account", back_populates="purchases")
