"""Service test fixtures — async DB, Stripe test doubles, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - get_payment_gateway overridden with a real StripePaymentGateway whose SDK
      module is a fake for checkout but the real one for webhook signatures

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (ADR: PostgreSQL-specific features not exercised here)
    - Webhooks signed with the same HMAC scheme Stripe uses, so verification is real
"""

from types import SimpleNamespace

import pytest
import stripe
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_payment_gateway
from app.core.domain_types import BookStatus
from app.db.base import Base
from app.infrastructure.database import get_db
from app.infrastructure.stripe_gateway import StripePaymentGateway
from app.main import app
from app.models.book import Book

from tests.services.stripe_fakes import (
    SELLER_EMAIL, WEBHOOK_SECRET, FakeCheckoutSessions, checkout_completed_event,
    sign_payload,
)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_checkout():
    return FakeCheckoutSessions()


@pytest.fixture
def gateway(fake_checkout):
    fake_stripe = SimpleNamespace(
        checkout=SimpleNamespace(Session=fake_checkout),
        WebhookSignature=stripe.WebhookSignature,
    )
    return StripePaymentGateway(
        api_key="sk_test_fake_key",
        webhook_secret=WEBHOOK_SECRET,
        currency="usd",
        client_url="http://client.test",
        stripe_client=fake_stripe,
    )


@pytest.fixture
async def client(test_session_factory, gateway):
    """FastAPI test client with DB and gateway dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
async def seed_book(test_db):
    """A published book priced 25.00 owned by SELLER_EMAIL."""
    book = Book(
        title="Go in Practice",
        author="Matt Butcher",
        price_minor=2500,
        status=BookStatus.PUBLISHED.value,
        seller_email=SELLER_EMAIL,
        seller_name="Librarian",
    )
    test_db.add(book)
    await test_db.commit()
    await test_db.refresh(book)
    return book


@pytest.fixture
def signer():
    return SimpleNamespace(
        sign=sign_payload, checkout_completed=checkout_completed_event,
    )
