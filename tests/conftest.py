"""Pytest configuration and fixtures."""

from datetime import date
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from motorai.models import Customer, Vehicle
from motorai.models.base import Base
from motorai.models.notification import NotificationChannel
from motorai.services.notification_service import (
    NotificationRecipient,
    NotificationResult,
    NotificationTransport,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# In-memory SQLite shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeTransport(NotificationTransport):
    """Records every send; optionally fails or raises."""

    def __init__(self, fail: bool = False, raise_error: Optional[Exception] = None):
        self.fail = fail
        self.raise_error = raise_error
        self.sent: List[dict] = []

    async def send(
        self,
        channel: NotificationChannel,
        recipient: NotificationRecipient,
        subject: str,
        message: str,
    ) -> NotificationResult:
        self.sent.append(
            {"channel": channel, "recipient": recipient, "subject": subject, "message": message}
        )
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail:
            return NotificationResult(success=False, channel=channel, error="mailbox unavailable")
        return NotificationResult(success=True, channel=channel, message_id=f"msg-{len(self.sent)}")


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


async def add_customer(session_maker, **overrides) -> Customer:
    values = {
        "first_name": "John",
        "last_name": "Doe",
        "email": "john.doe@example.com",
        "phone_number": "+15555551234",
        "preferred_contact_method": "email",
        "receive_reminders": True,
    }
    values.update(overrides)
    async with session_maker() as session:
        customer = Customer(**values)
        session.add(customer)
        await session.commit()
        return customer


async def add_vehicle(session_maker, customer_id: int, **overrides) -> Vehicle:
    values = {
        "vin": "1HGCV1F34JA000001",
        "year": 2018,
        "make": "Honda",
        "model": "Civic",
        "current_mileage": 22400,
        "status": "active",
    }
    values.update(overrides)
    async with session_maker() as session:
        vehicle = Vehicle(customer_id=customer_id, **values)
        session.add(vehicle)
        await session.commit()
        return vehicle


async def add_rows(session_maker, *rows) -> None:
    async with session_maker() as session:
        session.add_all(rows)
        await session.commit()


@pytest_asyncio.fixture
async def test_customer(session_maker) -> Customer:
    """Create test customer."""
    return await add_customer(session_maker)


@pytest_asyncio.fixture
async def test_vehicle(session_maker, test_customer: Customer) -> Vehicle:
    """Create test vehicle: 2018 Honda Civic at 22,400 miles."""
    return await add_vehicle(session_maker, test_customer.id)


@pytest.fixture
def today() -> date:
    return date(2024, 6, 1)
