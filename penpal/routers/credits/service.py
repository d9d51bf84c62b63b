"""Credits/Purchases service layer."""

import hmac
import logging
from typing import Optional

from fastapi import HTTPException, status

import core.config as config
from penpal.errors import NotAuthenticated, NotFound, PaymentNotCompleted
from penpal.models.account import utcnow
from penpal.models.enums import DeliveryType, PurchaseStatus
from penpal.services import ledger_service
from penpal.services.credit_pricing import get_credit_package
from penpal.services.stripe_service import verify_webhook_signature

from . import repository as credits_repository
from .schemas import (
    ConfirmPurchaseResponse,
    CreditPurchaseResponse,
    CreditSummaryResponse,
    PurchaseCreditsResponse,
    ResetDailyRepliesResponse,
)

logger = logging.getLogger(__name__)


def _value(enum_or_str):
    return getattr(enum_or_str, "value", enum_or_str)


async def purchase_credits(db, *, account, credit_type: str, checkout, origin: Optional[str]) -> PurchaseCreditsResponse:
    """
    Open a hosted checkout for one credit package and record it as pending.

    Raises:
        InvalidCreditKind: If credit_type is not "digital" or "physical"
        PaymentProviderError: If the checkout session cannot be created
    """
    package = get_credit_package(credit_type)
    account_id = account.account_id
    base_url = (origin or config.APP_BASE_URL).rstrip("/")

    session = await checkout.create_checkout_session(
        customer_email=account.email,
        product_name=package.product_name,
        description=package.description,
        amount_minor=package.price_minor,
        currency=package.currency,
        success_url=f"{base_url}/credits/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base_url}/credits",
        metadata={
            "account_id": str(account_id),
            "credit_type": package.credit_type.value,
            "credits": str(package.credits),
        },
    )

    credits_repository.create_purchase(
        db,
        account_id=account_id,
        credit_type=package.credit_type,
        credits_requested=package.credits,
        amount_paid_minor=package.price_minor,
        currency=package.currency,
        stripe_session_id=session.session_id,
    )
    await db.commit()

    logger.info(
        f"Purchase intent created: account={account_id}, type={package.credit_type.value}, "
        f"credits={package.credits}, session={session.session_id}"
    )
    return PurchaseCreditsResponse(url=session.url, session_id=session.session_id)


async def confirm_purchase(db, *, session_id: str, checkout) -> ConfirmPurchaseResponse:
    """
    Credit the account for a paid checkout session, at most once.

    Confirming an already completed purchase returns the same outcome with
    ``already_processed=True`` and changes nothing.

    Raises:
        PaymentNotCompleted: If the session is not paid
        NotFound: If no purchase was recorded for the session
    """
    session = await checkout.retrieve_checkout_session(session_id)
    if session.payment_status != "paid":
        raise PaymentNotCompleted(f"Payment status is {session.payment_status}")

    purchase = await credits_repository.get_purchase_by_session_id(db, session_id=session_id)
    if not purchase:
        raise NotFound(f"No purchase recorded for session {session_id}")

    account_id = purchase.account_id
    credit_type = DeliveryType(_value(purchase.credit_type))
    credits = purchase.credits_requested

    if session.metadata and (
        session.metadata.get("account_id") != str(account_id)
        or session.metadata.get("credit_type") != credit_type.value
        or session.metadata.get("credits") != str(credits)
    ):
        logger.warning(
            f"Checkout metadata does not match purchase {purchase.id}: {session.metadata}"
        )

    if _value(purchase.status) == PurchaseStatus.COMPLETED.value:
        return await _already_processed(db, account_id, credit_type, credits)

    if not await credits_repository.complete_purchase(db, session_id=session_id, at=utcnow()):
        # A concurrent confirmation got there first
        await db.rollback()
        return await _already_processed(db, account_id, credit_type, credits)

    new_total = await ledger_service.grant_credits(
        db, account_id, credit_type=credit_type, amount=credits
    )
    await db.commit()

    logger.info(
        f"Purchase completed: session={session_id}, account={account_id}, "
        f"type={credit_type.value}, credits={credits}, balance={new_total}"
    )
    return ConfirmPurchaseResponse(
        credits_added=credits,
        credit_type=credit_type.value,
        new_total=new_total,
        already_processed=False,
    )


async def _already_processed(db, account_id: int, credit_type: DeliveryType, credits: int):
    snapshot = await ledger_service.get_snapshot(db, account_id)
    return ConfirmPurchaseResponse(
        credits_added=credits,
        credit_type=credit_type.value,
        new_total=snapshot.credits_for(credit_type),
        already_processed=True,
    )


async def get_credit_summary(db, *, account) -> CreditSummaryResponse:
    today = ledger_service.utc_today()
    snapshot = await ledger_service.get_snapshot(db, account.account_id)
    purchases = await credits_repository.list_recent_purchases(
        db, account_id=account.account_id, limit=10
    )
    return CreditSummaryResponse(
        digital_credits=snapshot.digital_credits,
        physical_credits=snapshot.physical_credits,
        free_replies_remaining=snapshot.free_replies_remaining(today),
        daily_free_replies=config.DAILY_FREE_DIGITAL_REPLIES,
        recent_purchases=[
            CreditPurchaseResponse(
                id=p.id,
                credit_type=_value(p.credit_type),
                credits_requested=p.credits_requested,
                amount_paid=p.amount_paid_minor / 100.0,
                currency=p.currency,
                status=_value(p.status),
                created_at=p.created_at.isoformat() if p.created_at else None,
                completed_at=p.completed_at.isoformat() if p.completed_at else None,
            )
            for p in purchases
        ],
    )


async def process_stripe_webhook(db, *, request, stripe_signature: Optional[str], checkout):
    if not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe-Signature header",
        )

    body = await request.body()
    try:
        event = verify_webhook_signature(body, stripe_signature)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature"
        )

    event_type = event["type"]
    event_id = event["id"]

    if event_type != "checkout.session.completed":
        logger.info(f"Unhandled webhook event type: {event_type} (event_id: {event_id})")
        return {"status": "ignored", "event_id": event_id}

    session_id = event["data"]["object"]["id"]
    try:
        outcome = await confirm_purchase(db, session_id=session_id, checkout=checkout)
    except (NotFound, PaymentNotCompleted) as e:
        # Stripe would keep redelivering; these sessions will never be creditable here
        logger.warning(f"Webhook {event_id} for session {session_id} not applied: {e.detail}")
        return {"status": "ignored", "event_id": event_id, "reason": e.code}

    return {
        "status": "already_processed" if outcome.already_processed else "processed",
        "event_id": event_id,
        "session_id": session_id,
    }


async def reset_daily_replies(db, *, internal_secret: Optional[str]) -> ResetDailyRepliesResponse:
    """
    Zero the free-reply counters for a new day.

    Raises:
        NotAuthenticated: If the shared secret is missing or wrong
    """
    if not config.INTERNAL_SECRET or not internal_secret or not hmac.compare_digest(
        internal_secret, config.INTERNAL_SECRET
    ):
        raise NotAuthenticated("Invalid internal secret")

    today = ledger_service.utc_today()
    count = await ledger_service.reset_daily_free_replies(db, today=today)
    await db.commit()
    return ResetDailyRepliesResponse(reset_date=today.isoformat(), accounts_reset=count)
