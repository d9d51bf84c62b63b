"""
Async Dependencies for Authentication and external services
"""
import logging

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.ports.generation import LetterGeneratorPort
from core.ports.payments import CheckoutPort
from core.ports.storage import BlobStorePort
from penpal.auth import validate_descope_jwt
from penpal.db import get_async_db
from penpal.errors import AdminRequired, NotAuthenticated
from penpal.models.account import Account

logger = logging.getLogger(__name__)


async def get_current_account(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
) -> Account:
    """
    Extracts and validates Descope JWT from Authorization header.

    First-time callers get an account with empty balances; a concurrent first
    request for the same identity resolves to the same row.
    """
    auth_header = request.headers.get("authorization") or request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        raise NotAuthenticated("Authorization token missing.")
    token = auth_header.split(" ", 1)[1].strip()
    user_info = validate_descope_jwt(token)

    stmt = select(Account).where(Account.descope_user_id == user_info["userId"])
    account = (await db.execute(stmt)).scalar_one_or_none()
    if account:
        return account

    account = Account(
        descope_user_id=user_info["userId"],
        email=user_info["email"] or f"user_{user_info['userId']}@descope.local",
        display_name=user_info.get("name"),
    )
    db.add(account)
    try:
        await db.commit()
        logger.info(f"Provisioned account {account.account_id} for {user_info['userId']}")
    except IntegrityError:
        await db.rollback()
        account = (await db.execute(stmt)).scalar_one_or_none()
        if not account:
            raise
    return account


async def get_admin_account(
    account: Account = Depends(get_current_account),
) -> Account:
    """Verify account is admin"""
    if not account.is_admin:
        raise AdminRequired()
    return account


def get_letter_generator() -> LetterGeneratorPort:
    from penpal.services.letter_generation_service import OpenAILetterGenerator

    return OpenAILetterGenerator()


def get_checkout() -> CheckoutPort:
    from penpal.services.stripe_service import StripeCheckout

    return StripeCheckout()


def get_blob_store() -> BlobStorePort:
    from penpal.services.storage_service import S3ImageStore

    return S3ImageStore()
