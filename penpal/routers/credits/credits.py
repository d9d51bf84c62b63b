"""Credits Router - Credit balances and purchases."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.ports.payments import CheckoutPort
from penpal.db import get_async_db
from penpal.dependencies import get_checkout, get_current_account
from penpal.models.account import Account

from .schemas import (
    ConfirmPurchaseRequest,
    ConfirmPurchaseResponse,
    CreditSummaryResponse,
    PurchaseCreditsRequest,
    PurchaseCreditsResponse,
)
from .service import (
    confirm_purchase as service_confirm_purchase,
    get_credit_summary as service_get_credit_summary,
    purchase_credits as service_purchase_credits,
)

router = APIRouter(prefix="/credits", tags=["Credits"])


@router.get("/me", response_model=CreditSummaryResponse)
async def get_credit_summary(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Get credit balances, today's remaining free replies and recent purchases.
    """
    return await service_get_credit_summary(db, account=account)


@router.post("/purchases", response_model=PurchaseCreditsResponse)
async def purchase_credits(
    body: PurchaseCreditsRequest,
    request: Request,
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_async_db),
    checkout: CheckoutPort = Depends(get_checkout),
):
    """
    Start a Stripe Checkout for a credit package.

    Packages:
    - digital: 100 reply credits for $5.00
    - physical: 5 letter credits for $5.00
    """
    return await service_purchase_credits(
        db,
        account=account,
        credit_type=body.credit_type,
        checkout=checkout,
        origin=request.headers.get("origin"),
    )


@router.post("/purchases/confirm", response_model=ConfirmPurchaseResponse)
async def confirm_purchase(
    body: ConfirmPurchaseRequest,
    db: AsyncSession = Depends(get_async_db),
    checkout: CheckoutPort = Depends(get_checkout),
):
    """
    Confirm a completed checkout and add the credits. Safe to call repeatedly.
    """
    return await service_confirm_purchase(db, session_id=body.session_id, checkout=checkout)
