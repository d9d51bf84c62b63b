"""Credits/Purchases schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field


class PurchaseCreditsRequest(BaseModel):
    credit_type: str = Field(..., description='Credit kind: "digital" or "physical"')


class PurchaseCreditsResponse(BaseModel):
    url: Optional[str] = None
    session_id: str


class ConfirmPurchaseRequest(BaseModel):
    session_id: str = Field(..., min_length=1)


class ConfirmPurchaseResponse(BaseModel):
    credits_added: int
    credit_type: str
    new_total: int
    already_processed: bool


class CreditPurchaseResponse(BaseModel):
    id: int
    credit_type: str
    credits_requested: int
    amount_paid: float
    currency: str
    status: str
    created_at: Optional[str] = None
    completed_at: Optional[str] = None


class CreditSummaryResponse(BaseModel):
    digital_credits: int
    physical_credits: int
    free_replies_remaining: int
    daily_free_replies: int
    recent_purchases: List[CreditPurchaseResponse]


class ResetDailyRepliesResponse(BaseModel):
    reset_date: str
    accounts_reset: int
