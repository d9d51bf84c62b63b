"""
Purchase flow integrity: pending intents, idempotent confirmation and concurrency.
"""

import asyncio

import pytest
from sqlalchemy import select

from conftest import seed_account
from penpal.errors import InvalidCreditKind, NotFound, PaymentNotCompleted
from penpal.models.enums import PurchaseStatus
from penpal.models.purchase import CreditPurchase
from penpal.routers.credits import service as credits_service
from penpal.services import ledger_service


async def start_purchase(session_maker, checkout, credit_type="digital", origin="https://letters.test"):
    async with session_maker() as session:
        account = await ledger_account(session)
        return await credits_service.purchase_credits(
            session, account=account, credit_type=credit_type, checkout=checkout, origin=origin
        )


async def ledger_account(session, account_id=1):
    from penpal.models.account import Account

    return (await session.execute(select(Account).where(Account.account_id == account_id))).scalar_one()


async def confirm(session_maker, checkout, session_id):
    async with session_maker() as session:
        return await credits_service.confirm_purchase(
            session, session_id=session_id, checkout=checkout
        )


async def get_purchase(session_maker, session_id):
    async with session_maker() as session:
        result = await session.execute(
            select(CreditPurchase).where(CreditPurchase.stripe_session_id == session_id)
        )
        return result.scalar_one()


@pytest.mark.asyncio
async def test_digital_purchase_creates_pending_intent(async_session_maker, checkout):
    async with async_session_maker() as session:
        await seed_account(session, digital_credits=3)

    response = await start_purchase(async_session_maker, checkout)

    assert response.session_id == "cs_test_1"
    assert response.url.endswith("cs_test_1")

    purchase = await get_purchase(async_session_maker, response.session_id)
    assert purchase.status == PurchaseStatus.PENDING
    assert purchase.credits_requested == 100
    assert purchase.amount_paid_minor / 100.0 == 5.00
    assert purchase.currency == "usd"

    sent = checkout.created[0]
    assert sent["product_name"] == "100 Digital Reply Credits"
    assert sent["amount_minor"] == 500
    assert sent["customer_email"] == "penpal_1@example.com"
    assert sent["success_url"] == "https://letters.test/credits/success?session_id={CHECKOUT_SESSION_ID}"
    assert sent["cancel_url"] == "https://letters.test/credits"
    assert sent["metadata"] == {"account_id": "1", "credit_type": "digital", "credits": "100"}


@pytest.mark.asyncio
async def test_physical_package(async_session_maker, checkout):
    async with async_session_maker() as session:
        await seed_account(session)

    response = await start_purchase(async_session_maker, checkout, credit_type="physical", origin=None)

    purchase = await get_purchase(async_session_maker, response.session_id)
    assert purchase.credits_requested == 5
    assert checkout.created[0]["product_name"] == "5 Physical Letter Credits"
    assert checkout.created[0]["cancel_url"].endswith("/credits")


@pytest.mark.asyncio
async def test_unknown_credit_type_rejected(async_session_maker, checkout):
    async with async_session_maker() as session:
        await seed_account(session)

    with pytest.raises(InvalidCreditKind):
        await start_purchase(async_session_maker, checkout, credit_type="gems")
    assert checkout.created == []


@pytest.mark.asyncio
async def test_confirm_credits_exactly_once(async_session_maker, checkout):
    async with async_session_maker() as session:
        await seed_account(session, digital_credits=12)

    response = await start_purchase(async_session_maker, checkout)
    checkout.mark_paid(response.session_id)

    first = await confirm(async_session_maker, checkout, response.session_id)
    second = await confirm(async_session_maker, checkout, response.session_id)

    assert first.credits_added == 100
    assert first.new_total == 112
    assert not first.already_processed

    assert second.already_processed
    assert second.credits_added == 100
    assert second.new_total == 112

    purchase = await get_purchase(async_session_maker, response.session_id)
    assert purchase.status == PurchaseStatus.COMPLETED
    assert purchase.completed_at is not None

    async with async_session_maker() as session:
        assert (await ledger_service.get_snapshot(session, 1)).digital_credits == 112


@pytest.mark.asyncio
async def test_concurrent_confirmations_credit_once(async_session_maker, checkout):
    async with async_session_maker() as session:
        await seed_account(session)

    response = await start_purchase(async_session_maker, checkout, credit_type="physical")
    checkout.mark_paid(response.session_id)

    outcomes = await asyncio.gather(
        *[confirm(async_session_maker, checkout, response.session_id) for _ in range(4)]
    )

    assert sum(1 for o in outcomes if not o.already_processed) == 1
    async with async_session_maker() as session:
        assert (await ledger_service.get_snapshot(session, 1)).physical_credits == 5


@pytest.mark.asyncio
async def test_unpaid_session_is_not_credited(async_session_maker, checkout):
    async with async_session_maker() as session:
        await seed_account(session)

    response = await start_purchase(async_session_maker, checkout)

    with pytest.raises(PaymentNotCompleted):
        await confirm(async_session_maker, checkout, response.session_id)

    purchase = await get_purchase(async_session_maker, response.session_id)
    assert purchase.status == PurchaseStatus.PENDING


@pytest.mark.asyncio
async def test_paid_session_without_purchase_is_not_found(async_session_maker, checkout):
    async with async_session_maker() as session:
        await seed_account(session)

    response = await start_purchase(async_session_maker, checkout)
    checkout.mark_paid(response.session_id)
    async with async_session_maker() as session:
        purchase = await session.get(CreditPurchase, 1)
        await session.delete(purchase)
        await session.commit()

    with pytest.raises(NotFound):
        await confirm(async_session_maker, checkout, response.session_id)


@pytest.mark.asyncio
async def test_credit_summary_lists_recent_purchases(async_session_maker, checkout):
    async with async_session_maker() as session:
        await seed_account(session, digital_credits=4, physical_credits=1)

    for _ in range(12):
        await start_purchase(async_session_maker, checkout)

    async with async_session_maker() as session:
        account = await ledger_account(session)
        summary = await credits_service.get_credit_summary(session, account=account)

    assert summary.digital_credits == 4
    assert summary.physical_credits == 1
    assert summary.free_replies_remaining == 2
    assert len(summary.recent_purchases) == 10
    assert summary.recent_purchases[0].amount_paid == 5.0
    assert summary.recent_purchases[0].status == "pending"
