"""Credits/Purchases repository layer."""

from sqlalchemy import desc, select, update


def create_purchase(
    db,
    *,
    account_id: int,
    credit_type,
    credits_requested: int,
    amount_paid_minor: int,
    currency: str,
    stripe_session_id: str,
):
    from penpal.models.enums import PurchaseStatus
    from penpal.models.purchase import CreditPurchase

    purchase = CreditPurchase(
        account_id=account_id,
        credit_type=credit_type,
        credits_requested=credits_requested,
        amount_paid_minor=amount_paid_minor,
        currency=currency,
        stripe_session_id=stripe_session_id,
        status=PurchaseStatus.PENDING,
    )
    db.add(purchase)
    return purchase


async def get_purchase_by_session_id(db, *, session_id: str):
    from penpal.models.purchase import CreditPurchase

    stmt = select(CreditPurchase).where(CreditPurchase.stripe_session_id == session_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def complete_purchase(db, *, session_id: str, at) -> bool:
    """Flip a pending purchase to completed. False if it was already completed."""
    from penpal.models.enums import PurchaseStatus
    from penpal.models.purchase import CreditPurchase

    stmt = (
        update(CreditPurchase)
        .where(CreditPurchase.stripe_session_id == session_id)
        .where(CreditPurchase.status == PurchaseStatus.PENDING)
        .values(status=PurchaseStatus.COMPLETED, completed_at=at)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def list_recent_purchases(db, *, account_id: int, limit: int = 10):
    from penpal.models.purchase import CreditPurchase

    stmt = (
        select(CreditPurchase)
        .where(CreditPurchase.account_id == account_id)
        .order_by(desc(CreditPurchase.created_at), desc(CreditPurchase.id))
        .limit(limit)
    )
    result = await db.execute(stmt)
    return result.scalars().all()
