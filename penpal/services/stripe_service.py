"""
Stripe Service - Handles Stripe Checkout sessions for credit purchases
"""
import asyncio
import logging
from typing import Dict, Optional

import stripe

import core.config as config
from core.ports.payments import CheckoutSession
from penpal.errors import PaymentProviderError

logger = logging.getLogger(__name__)

# Initialize Stripe
stripe.api_key = config.STRIPE_API_KEY

if not stripe.api_key:
    logger.warning("STRIPE_API_KEY not set - Stripe operations will fail")

if not config.STRIPE_WEBHOOK_SECRET:
    logger.warning("STRIPE_WEBHOOK_SECRET not set - Webhook verification will fail")


def _field(obj, key: str, default=None):
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def _to_checkout_session(session) -> CheckoutSession:
    metadata = _field(session, "metadata", {})
    return CheckoutSession(
        session_id=_field(session, "id"),
        url=_field(session, "url"),
        payment_status=_field(session, "payment_status", "unpaid"),
        metadata={
            key: str(_field(metadata, key))
            for key in ("account_id", "credit_type", "credits")
            if _field(metadata, key) is not None
        },
    )


async def _call_stripe(func, *args, **kwargs):
    # The Stripe SDK is blocking; run it off the event loop with a deadline
    return await asyncio.wait_for(
        asyncio.to_thread(func, *args, **kwargs),
        timeout=config.PAYMENT_PROVIDER_TIMEOUT_SECONDS,
    )


class StripeCheckout:
    """``CheckoutPort`` backed by Stripe hosted Checkout."""

    async def find_customer_id(self, email: str) -> Optional[str]:
        customers = await _call_stripe(stripe.Customer.list, email=email, limit=1)
        data = _field(customers, "data", [])
        if data:
            return _field(data[0], "id")
        return None

    async def create_checkout_session(
        self,
        *,
        customer_email: str,
        product_name: str,
        description: str,
        amount_minor: int,
        currency: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> CheckoutSession:
        """
        Create a hosted Checkout Session for one credit package.

        Reuses an existing Stripe customer with the same email when there is one.

        Raises:
            PaymentProviderError: If Stripe rejects the request or times out
        """
        try:
            customer_id = await self.find_customer_id(customer_email)
            params = {
                "line_items": [
                    {
                        "price_data": {
                            "currency": currency,
                            "product_data": {
                                "name": product_name,
                                "description": description,
                            },
                            "unit_amount": amount_minor,
                        },
                        "quantity": 1,
                    }
                ],
                "mode": "payment",
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
            }
            if customer_id:
                params["customer"] = customer_id
            else:
                params["customer_email"] = customer_email

            session = await _call_stripe(stripe.checkout.Session.create, **params)
        except stripe.StripeError as e:
            logger.error(f"Failed to create checkout session for {customer_email}: {str(e)}")
            raise PaymentProviderError(f"Failed to create checkout session: {str(e)}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timed out creating checkout session for {customer_email}")
            raise PaymentProviderError("Timed out creating checkout session") from e

        logger.info(f"Created checkout session {_field(session, 'id')} for {customer_email}")
        return _to_checkout_session(session)

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """
        Raises:
            PaymentProviderError: If Stripe rejects the request or times out
        """
        try:
            session = await _call_stripe(stripe.checkout.Session.retrieve, session_id)
        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve checkout session {session_id}: {str(e)}")
            raise PaymentProviderError(f"Failed to retrieve checkout session: {str(e)}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timed out retrieving checkout session {session_id}")
            raise PaymentProviderError("Timed out retrieving checkout session") from e

        return _to_checkout_session(session)


def verify_webhook_signature(payload: bytes, signature: str):
    """
    Verify Stripe webhook signature.

    Args:
        payload: Raw request body as bytes
        signature: Stripe-Signature header value

    Returns:
        Stripe Event object if valid

    Raises:
        ValueError: If signature verification fails
    """
    if not config.STRIPE_WEBHOOK_SECRET:
        raise ValueError("STRIPE_WEBHOOK_SECRET not configured")

    try:
        return stripe.Webhook.construct_event(
            payload, signature, config.STRIPE_WEBHOOK_SECRET
        )
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {str(e)}")
        raise ValueError(f"Invalid webhook payload: {str(e)}") from e
    except stripe.SignatureVerificationError as e:
        logger.error(f"Invalid webhook signature: {str(e)}")
        raise ValueError(f"Invalid webhook signature: {str(e)}") from e
