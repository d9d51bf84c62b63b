"""
Ledger Service - Handles credit balance adjustments and queries

Every mutation is a single guarded UPDATE so concurrent requests can never
overdraw a balance or use the free allowance twice. None of these functions
commit; the caller commits the ledger change together with whatever it pays
for.
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import and_, case, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

import core.config as config
from penpal.errors import NotFound
from penpal.models.account import Account
from penpal.models.enums import DeliveryType
from penpal.services.entitlement import Entitlement, LedgerSnapshot

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _credit_column(credit_type: DeliveryType):
    if credit_type == DeliveryType.PHYSICAL:
        return Account.physical_credits
    return Account.digital_credits


async def get_snapshot(db: AsyncSession, account_id: int) -> LedgerSnapshot:
    """
    Read the current ledger columns for an account.

    Reads columns rather than the ORM entity so a previously loaded
    ``Account`` in the session's identity map can't serve stale balances.

    Raises:
        NotFound: If the account does not exist
    """
    stmt = select(
        Account.account_id,
        Account.digital_credits,
        Account.physical_credits,
        Account.daily_free_replies_used,
        Account.daily_reset_date,
    ).where(Account.account_id == account_id)
    result = await db.execute(stmt)
    row = result.one_or_none()
    if row is None:
        raise NotFound(f"Account {account_id} not found")

    return LedgerSnapshot(
        account_id=row.account_id,
        digital_credits=row.digital_credits or 0,
        physical_credits=row.physical_credits or 0,
        daily_free_replies_used=row.daily_free_replies_used or 0,
        daily_reset_date=row.daily_reset_date,
    )


async def consume_free_reply(
    db: AsyncSession,
    account_id: int,
    *,
    today: date,
    allowance: Optional[int] = None,
) -> bool:
    """
    Use one free digital reply, rolling the counter over on a later date.

    The reset date only moves forward: a caller holding an older ``today``
    matches no row once the account has rolled over to a newer day.

    Returns:
        True if the allowance was consumed, False if it was already exhausted
        or ``today`` is older than the stored reset date
    """
    if allowance is None:
        allowance = config.DAILY_FREE_DIGITAL_REPLIES

    stmt = (
        update(Account)
        .where(Account.account_id == account_id)
        .where(
            or_(
                Account.daily_reset_date.is_(None),
                Account.daily_reset_date < today,
                and_(
                    Account.daily_reset_date == today,
                    Account.daily_free_replies_used < allowance,
                ),
            )
        )
        .values(
            daily_free_replies_used=case(
                (Account.daily_reset_date == today, Account.daily_free_replies_used + 1),
                else_=1,
            ),
            daily_reset_date=today,
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    consumed = result.rowcount == 1
    if consumed:
        logger.info(f"Free reply consumed: account={account_id}, date={today}")
    return consumed


async def debit_credits(
    db: AsyncSession,
    account_id: int,
    *,
    credit_type: DeliveryType,
    amount: int,
) -> bool:
    """
    Subtract ``amount`` credits if and only if the balance covers it.

    Returns:
        True if debited, False if the balance was insufficient
    """
    if amount <= 0:
        raise ValueError("amount must be positive")

    column = _credit_column(credit_type)
    stmt = (
        update(Account)
        .where(Account.account_id == account_id)
        .where(column >= amount)
        .values({column: column - amount, Account.updated_at: datetime.now(timezone.utc)})
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    debited = result.rowcount == 1
    if debited:
        logger.info(
            f"Credits debited: account={account_id}, type={credit_type.value}, amount={amount}"
        )
    return debited


async def grant_credits(
    db: AsyncSession,
    account_id: int,
    *,
    credit_type: DeliveryType,
    amount: int,
) -> int:
    """
    Add ``amount`` credits in place and return the new balance.

    Raises:
        ValueError: If amount is not positive
        NotFound: If the account does not exist
    """
    if amount <= 0:
        raise ValueError("amount must be positive")

    column = _credit_column(credit_type)
    stmt = (
        update(Account)
        .where(Account.account_id == account_id)
        .values({column: column + amount, Account.updated_at: datetime.now(timezone.utc)})
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount != 1:
        raise NotFound(f"Account {account_id} not found")

    new_total = (
        await db.execute(select(column).where(Account.account_id == account_id))
    ).scalar_one()

    logger.info(
        f"Credits granted: account={account_id}, type={credit_type.value}, "
        f"amount={amount}, balance={new_total}"
    )
    return new_total


async def apply_entitlement(
    db: AsyncSession,
    account_id: int,
    entitlement: Entitlement,
    *,
    today: date,
) -> bool:
    """Apply the debit an entitlement decision calls for. False means it lost a race."""
    if entitlement.uses_free_allowance:
        return await consume_free_reply(db, account_id, today=today)
    return await debit_credits(
        db, account_id, credit_type=entitlement.credit_type, amount=entitlement.cost
    )


async def reset_daily_free_replies(db: AsyncSession, *, today: date) -> int:
    """
    Zero every free-reply counter whose reset date is before ``today``.

    Idempotent per date: a second run on the same day touches no rows.

    Returns:
        Number of accounts reset
    """
    stmt = (
        update(Account)
        .where(or_(Account.daily_reset_date.is_(None), Account.daily_reset_date < today))
        .values(daily_free_replies_used=0, daily_reset_date=today)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    logger.info(f"Daily free replies reset: date={today}, accounts={result.rowcount}")
    return result.rowcount
