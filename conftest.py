import asyncio
import os

os.environ.setdefault("TESTING", "true")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from core.ports.payments import CheckoutSession
from penpal.db import create_tables
from penpal.errors import GenerationFailed
from penpal.models.account import Account
from penpal.models.creature import Creature
from penpal.models.enums import CreatureState
from penpal.models.letters import Conversation


class FakeLetterGenerator:
    """Deterministic ``LetterGeneratorPort``.

    With ``gate`` set, each call waits until that many calls are in flight so
    concurrent requests all read the ledger before any of them writes.
    """

    def __init__(self, reply="Dear friend, the moon sends its regards.", *, error=None, gate=None, delay=0):
        self.reply = reply
        self.error = error
        self.gate = gate
        self.delay = delay
        self.prompts = []
        self._arrived = asyncio.Event()

    async def generate_letter(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.gate and len(self.prompts) >= self.gate:
            self._arrived.set()
        if self.gate:
            await asyncio.wait_for(self._arrived.wait(), timeout=5)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class FailingLetterGenerator(FakeLetterGenerator):
    def __init__(self):
        super().__init__(error=GenerationFailed())


class FakeCheckout:
    """In-memory ``CheckoutPort``; sessions start unpaid."""

    def __init__(self):
        self.sessions = {}
        self.created = []
        self.retrieved = []

    async def create_checkout_session(self, **kwargs) -> CheckoutSession:
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append(kwargs)
        self.sessions[session_id] = CheckoutSession(
            session_id=session_id,
            url=f"https://checkout.stripe.test/{session_id}",
            payment_status="unpaid",
            metadata=dict(kwargs["metadata"]),
        )
        return self.sessions[session_id]

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        self.retrieved.append(session_id)
        return self.sessions[session_id]

    def mark_paid(self, session_id: str):
        current = self.sessions[session_id]
        self.sessions[session_id] = CheckoutSession(
            session_id=current.session_id,
            url=current.url,
            payment_status="paid",
            metadata=current.metadata,
        )


class FakeBlobStore:
    def __init__(self):
        self.objects = {}

    async def upload_image(self, *, key: str, data: bytes, content_type: str) -> str:
        self.objects[key] = (data, content_type)
        return f"https://images.test/{key}"


@pytest_asyncio.fixture
async def async_engine(tmp_path):
    db_path = tmp_path / "penpal_tests.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    await create_tables(bind=engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def async_session_maker(async_engine):
    return async_sessionmaker(async_engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(async_session_maker):
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def generator():
    return FakeLetterGenerator()


@pytest.fixture
def checkout():
    return FakeCheckout()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


async def seed_account(
    session,
    *,
    account_id=1,
    digital_credits=0,
    physical_credits=0,
    daily_free_replies_used=0,
    daily_reset_date=None,
    is_admin=False,
):
    account = Account(
        account_id=account_id,
        descope_user_id=f"descope-user-{account_id}",
        email=f"penpal_{account_id}@example.com",
        display_name=f"Penpal {account_id}",
        is_admin=is_admin,
        digital_credits=digital_credits,
        physical_credits=physical_credits,
        daily_free_replies_used=daily_free_replies_used,
        daily_reset_date=daily_reset_date,
    )
    session.add(account)
    await session.commit()
    return account


async def seed_creature(session, *, account_id=1, name="Bramble", backstory=None, state=CreatureState.IDLE):
    creature = Creature(
        account_id=account_id,
        name=name,
        backstory=backstory or "a hedgehog who keeps a lantern library under an oak",
        conversation_state=state,
    )
    session.add(creature)
    await session.commit()
    return creature


async def seed_conversation(session, *, account_id=1, creature_id):
    conversation = Conversation(creature_id=creature_id, account_id=account_id)
    session.add(conversation)
    await session.commit()
    return conversation


@pytest_asyncio.fixture
async def seeded(async_session_maker):
    """Account 1 owning one creature with an open conversation."""

    async def _seed(**account_kwargs):
        async with async_session_maker() as session:
            account = await seed_account(session, **account_kwargs)
            creature = await seed_creature(
                session, account_id=account.account_id, state=CreatureState.WAITING_FOR_LETTER
            )
            conversation = await seed_conversation(
                session, account_id=account.account_id, creature_id=creature.id
            )
            return account, creature, conversation

    return _seed


