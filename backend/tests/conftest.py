"""
Pytest fixtures for test database, client, fakes and authentication.

Each test gets a fresh SQLite file database (set TEST_DATABASE_URL to run
against PostgreSQL instead). The payment gateway and the realtime notifier
are replaced with in-memory fakes through dependency overrides.
"""

import itertools
import os
from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token, hash_password
from app.models.user import User, UserRole
from app.models.event import Event, EventStatus
from app.services.interfaces.notifier import Notifier
from app.services.interfaces.payment_gateway import (
    CheckoutRequest,
    CheckoutSession,
    PaymentGateway,
    SessionSettlement,
)
from app.services.providers import get_notifier, get_payment_gateway


class FakePaymentGateway(PaymentGateway):
    """Hosted checkout stand-in: sessions settle only when a test says so."""

    def __init__(self):
        self.requests: dict[str, CheckoutRequest] = {}
        self.settled: set[str] = set()
        self._ids = itertools.count(1)

    async def create_session(self, request: CheckoutRequest) -> CheckoutSession:
        session_id = f"cs_test_{next(self._ids)}"
        self.requests[session_id] = request
        return CheckoutSession(
            session_id=session_id,
            payment_url=f"https://checkout.test/pay/{session_id}",
        )

    async def get_session_settlement(self, session_id: str) -> SessionSettlement:
        return SessionSettlement(session_id=session_id, settled=session_id in self.settled)

    def settle(self, session_id: str) -> None:
        self.settled.add(session_id)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages: list[dict] = []

    async def publish(self, message: dict) -> None:
        self.messages.append(message)

    def of_type(self, message_type: str) -> list[dict]:
        return [m for m in self.messages if m["type"] == message_type]


class FailingNotifier(Notifier):
    """A realtime layer whose every publish blows up."""

    async def publish(self, message: dict) -> None:
        raise RuntimeError("socket layer down")


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Fresh schema per test. A file database so separate sessions share it."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    connect_args = {"timeout": 30} if url.startswith("sqlite") else {}
    test_engine = create_async_engine(url, echo=False, connect_args=connect_args)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    fake_gateway: FakePaymentGateway,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB session, gateway and notifier overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def failing_notifier(client: AsyncClient) -> AsyncClient:
    """The client, with broadcasts failing on every publish."""
    app.dependency_overrides[get_notifier] = lambda: FailingNotifier()
    return client


async def _create_user(db: AsyncSession, email: str, username: str, role: UserRole) -> User:
    user = User(
        email=email,
        username=username,
        hashed_password=hash_password("testpassword123"),
        role=role.value,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "test@example.com", "testuser", UserRole.USER)


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@example.com", "adminuser", UserRole.ADMIN)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    token = create_access_token(data={"sub": str(test_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    token = create_access_token(data={"sub": str(admin_user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def event_payload() -> dict:
    return {
        "title": "Python Conference 2027",
        "description": "Annual Python gathering",
        "date": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        "location": "Convention Center",
        "total_seats": 500,
        "ticket_price": 49.5,
        "primary_image": {"public_id": "events/pycon", "url": "https://img.test/pycon.jpg"},
        "secondary_images": [],
    }


@pytest.fixture
def make_event(db_session: AsyncSession, admin_user: User):
    """Factory for events inserted straight into the database."""

    async def _make_event(**overrides) -> Event:
        fields = {
            "title": "Test Concert",
            "description": "A test event",
            "date": datetime.now(timezone.utc) + timedelta(days=30),
            "location": "Test Venue",
            "total_seats": 100,
            "ticket_price": 25.0,
            "primary_image": {"public_id": "events/concert", "url": "https://img.test/concert.jpg"},
            "secondary_images": [],
            "status": EventStatus.ACTIVE.value,
            "created_by": admin_user.id,
        }
        fields.update(overrides)
        fields.setdefault("available_seats", fields["total_seats"])

        event = Event(**fields)
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return _make_event


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """An event with 100 seats."""
    return await make_event()


@pytest_asyncio.fixture
async def sold_out_event(make_event) -> Event:
    """An event with 0 available seats."""
    return await make_event(title="Sold Out Show", total_seats=50, available_seats=0)


@pytest_asyncio.fixture
async def last_seat_event(make_event) -> Event:
    """An event with exactly one seat."""
    return await make_event(title="Intimate Gig", total_seats=1)
