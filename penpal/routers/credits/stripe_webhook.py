"""Stripe Webhook Router - Handles Stripe webhook events."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.ports.payments import CheckoutPort
from penpal.db import get_async_db
from penpal.dependencies import get_checkout

from .service import process_stripe_webhook as service_process_stripe_webhook

router = APIRouter(prefix="/stripe/webhook", tags=["Stripe Webhooks"])


@router.post("")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    db: AsyncSession = Depends(get_async_db),
    checkout: CheckoutPort = Depends(get_checkout),
):
    return await service_process_stripe_webhook(
        db, request=request, stripe_signature=stripe_signature, checkout=checkout
    )
