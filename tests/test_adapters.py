"""
Production adapters with their SDKs mocked: Stripe, OpenAI, S3 and Descope.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import openai
import pytest
import stripe
from botocore.exceptions import ClientError
from descope import AuthException

import core.config as config
from penpal import auth
from penpal.errors import GenerationFailed, NotAuthenticated, PaymentProviderError, StorageError
from penpal.services import stripe_service
from penpal.services.letter_generation_service import OpenAILetterGenerator
from penpal.services.storage_service import S3ImageStore
from penpal.services.stripe_service import StripeCheckout, verify_webhook_signature


CHECKOUT_KWARGS = dict(
    customer_email="parent@example.com",
    product_name="100 Digital Reply Credits",
    description="100 digital credits for Fantasy Letters",
    amount_minor=500,
    currency="usd",
    success_url="https://letters.test/credits/success?session_id={CHECKOUT_SESSION_ID}",
    cancel_url="https://letters.test/credits",
    metadata={"account_id": "1", "credit_type": "digital", "credits": "100"},
)


# Stripe


@pytest.mark.asyncio
async def test_checkout_reuses_existing_customer():
    created = {
        "id": "cs_123",
        "url": "https://checkout.stripe.com/c/cs_123",
        "payment_status": "unpaid",
        "metadata": {"account_id": "1", "credit_type": "digital", "credits": "100"},
    }
    with patch.object(stripe.Customer, "list", MagicMock(return_value={"data": [{"id": "cus_9"}]})), \
            patch.object(stripe.checkout.Session, "create", MagicMock(return_value=created)) as create:
        session = await StripeCheckout().create_checkout_session(**CHECKOUT_KWARGS)

    params = create.call_args.kwargs
    assert params["customer"] == "cus_9"
    assert "customer_email" not in params
    assert params["mode"] == "payment"
    assert params["line_items"][0]["price_data"]["unit_amount"] == 500
    assert params["line_items"][0]["price_data"]["product_data"]["name"] == "100 Digital Reply Credits"
    assert session.session_id == "cs_123"
    assert session.metadata["credits"] == "100"


@pytest.mark.asyncio
async def test_checkout_without_customer_uses_email():
    created = {"id": "cs_456", "url": "https://checkout.stripe.com/c/cs_456", "metadata": {}}
    with patch.object(stripe.Customer, "list", MagicMock(return_value={"data": []})), \
            patch.object(stripe.checkout.Session, "create", MagicMock(return_value=created)) as create:
        session = await StripeCheckout().create_checkout_session(**CHECKOUT_KWARGS)

    assert create.call_args.kwargs["customer_email"] == "parent@example.com"
    assert session.payment_status == "unpaid"


@pytest.mark.asyncio
async def test_checkout_stripe_error_becomes_provider_error():
    with patch.object(stripe.Customer, "list", MagicMock(side_effect=stripe.StripeError("down"))):
        with pytest.raises(PaymentProviderError) as exc_info:
            await StripeCheckout().create_checkout_session(**CHECKOUT_KWARGS)
    assert isinstance(exc_info.value.__cause__, stripe.StripeError)


@pytest.mark.asyncio
async def test_retrieve_checkout_session():
    retrieved = {
        "id": "cs_123",
        "url": None,
        "payment_status": "paid",
        "metadata": {"account_id": "4", "credit_type": "physical", "credits": "5"},
    }
    with patch.object(stripe.checkout.Session, "retrieve", MagicMock(return_value=retrieved)):
        session = await StripeCheckout().retrieve_checkout_session("cs_123")

    assert session.payment_status == "paid"
    assert session.metadata == {"account_id": "4", "credit_type": "physical", "credits": "5"}


def test_webhook_signature_requires_secret(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "")
    with pytest.raises(ValueError):
        verify_webhook_signature(b"{}", "t=1,v1=abc")


def test_webhook_signature_failure_is_value_error(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    error = stripe.SignatureVerificationError("bad signature", "t=1,v1=abc")
    with patch.object(stripe.Webhook, "construct_event", MagicMock(side_effect=error)):
        with pytest.raises(ValueError):
            stripe_service.verify_webhook_signature(b"{}", "t=1,v1=abc")


# OpenAI


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def fake_openai_client(**create_kwargs):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(**create_kwargs)
    return client


@pytest.mark.asyncio
async def test_openai_generator_sends_prompt_as_system_message():
    client = fake_openai_client(return_value=chat_response("  Hello from the moon!  "))
    generator = OpenAILetterGenerator(client, model="gpt-test")

    letter = await generator.generate_letter("You are Pip...")

    assert letter == "Hello from the moon!"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["max_tokens"] == 400
    assert kwargs["temperature"] == 0.7
    assert kwargs["messages"] == [
        {"role": "system", "content": "You are Pip..."},
        {"role": "user", "content": "Please write the letter response."},
    ]


@pytest.mark.asyncio
async def test_openai_error_becomes_generation_failed():
    client = fake_openai_client(side_effect=openai.OpenAIError("rate limited"))
    with pytest.raises(GenerationFailed):
        await OpenAILetterGenerator(client).generate_letter("prompt")


@pytest.mark.asyncio
async def test_openai_empty_content_is_failure():
    client = fake_openai_client(return_value=chat_response(None))
    with pytest.raises(GenerationFailed):
        await OpenAILetterGenerator(client).generate_letter("prompt")


# S3


@pytest.mark.asyncio
async def test_s3_upload_returns_public_url():
    client = MagicMock()
    store = S3ImageStore(bucket="letters-bucket", region="us-west-1", client=client)

    url = await store.upload_image(key="scan/1/abc.jpg", data=b"jpeg", content_type="image/jpeg")

    assert url == "https://letters-bucket.s3.us-west-1.amazonaws.com/scan/1/abc.jpg"
    client.put_object.assert_called_once_with(
        Bucket="letters-bucket", Key="scan/1/abc.jpg", Body=b"jpeg", ContentType="image/jpeg"
    )


@pytest.mark.asyncio
async def test_s3_client_error_becomes_storage_error():
    client = MagicMock()
    client.put_object.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
    )
    store = S3ImageStore(bucket="letters-bucket", client=client)

    with pytest.raises(StorageError):
        await store.upload_image(key="k.png", data=b"png", content_type="image/png")


# Descope


def test_validate_descope_jwt_reads_login_id(monkeypatch):
    client = MagicMock()
    client.validate_session.return_value = {"userId": "U123", "loginIds": ["kid@example.com"], "name": "Kid"}
    monkeypatch.setattr(auth, "_get_client", lambda: client)

    assert auth.validate_descope_jwt("token") == {
        "userId": "U123",
        "email": "kid@example.com",
        "name": "Kid",
    }


def test_validate_descope_jwt_rejects_invalid_session(monkeypatch):
    client = MagicMock()
    client.validate_session.side_effect = AuthException(401, "invalid", "token expired")
    monkeypatch.setattr(auth, "_get_client", lambda: client)

    with pytest.raises(NotAuthenticated):
        auth.validate_descope_jwt("token")


def test_validate_descope_jwt_requires_user_id(monkeypatch):
    client = MagicMock()
    client.validate_session.return_value = {"loginIds": []}
    monkeypatch.setattr(auth, "_get_client", lambda: client)

    with pytest.raises(NotAuthenticated):
        auth.validate_descope_jwt("token")
