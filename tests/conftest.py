"""Pytest fixtures for HotelOps tests."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hotelops.config.settings import Settings
from hotelops.core.permissions import Role
from hotelops.core.security import create_access_token
from hotelops.db.config import create_engine_from_settings, create_session_factory
from hotelops.db.models import Base, Booking, BookingPayment, Guest, Hotel, Room, User
from hotelops.subscription.policy import utc_now


# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Settings and database fixtures
# =============================================================================


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'hotelops.db'}",
        ENVIRONMENT="test",
        DEBUG=True,
        log_level="DEBUG",
        JWT_SECRET=SecretStr("test-jwt-secret-with-enough-length-0123456789"),
        TRUSTED_ORIGINS=["https://console.example.com"],
    )


@pytest_asyncio.fixture
async def test_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with all tables."""
    engine = create_engine_from_settings(test_settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Tenant-aware session factory bound to the test engine."""
    return create_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


# =============================================================================
# API test fixtures
# =============================================================================


@pytest.fixture
def test_app(
    test_settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> FastAPI:
    """Create a FastAPI test application backed by the test database."""
    from hotelops.api.app import create_app

    return create_app(settings=test_settings, session_factory=session_factory)


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing.

    Calls the application directly without network overhead.
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# =============================================================================
# Seed data
# =============================================================================


class Seeder:
    """Writes fixture rows, each helper in its own committed session."""

    def __init__(self, factory: async_sessionmaker[AsyncSession], settings: Settings):
        self.factory = factory
        self.settings = settings

    async def _save(self, instance: Any) -> Any:
        async with self.factory() as session:
            session.add(instance)
            await session.commit()
        return instance

    async def hotel(
        self,
        name: str = "Palm Hotel",
        created_by: UUID | None = None,
        end_date: datetime | None = None,
        status: str = "active",
        is_active: bool = True,
        settings: dict[str, Any] | None = None,
        unlimited: bool = False,
    ) -> Hotel:
        suffix = uuid4().hex[:8]
        if unlimited:
            end_date = None
        elif end_date is None:
            end_date = utc_now() + timedelta(days=30)
        hotel = Hotel(
            name=name,
            slug=f"hotel-{suffix}",
            email=f"hotel-{suffix}@example.com",
            phone="+966500000000",
            subscription_status=status,
            subscription_end_date=end_date,
            is_active=is_active,
            created_by=created_by,
        )
        if settings is not None:
            hotel.settings = settings
        return await self._save(hotel)

    async def user(
        self,
        role: Role = Role.ADMIN,
        hotel: Hotel | None = None,
        email: str | None = None,
        is_active: bool = True,
        is_verified: bool = False,
        permissions: list[str] | None = None,
        created_by: UUID | None = None,
        created_at: datetime | None = None,
        name: str = "Test Operator",
    ) -> User:
        user = User(
            hotel_id=hotel.id if hotel is not None else None,
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            password_hash="not-a-real-hash",
            name=name,
            role=role.value,
            permissions=permissions or [],
            is_active=is_active,
            is_verified=is_verified,
            created_by=created_by,
        )
        if created_at is not None:
            user.created_at = created_at
        return await self._save(user)

    async def room(
        self,
        hotel: Hotel,
        number: str = "101",
        floor: int = 1,
        price: str = "100.00",
        status: str = "available",
    ) -> Room:
        return await self._save(
            Room(
                hotel_id=hotel.id,
                room_number=number,
                floor=floor,
                type="double",
                status=status,
                price_per_night=Decimal(price),
            )
        )

    async def guest(self, hotel: Hotel, first_name: str = "Sara", last_name: str = "Ali") -> Guest:
        return await self._save(
            Guest(
                hotel_id=hotel.id,
                first_name=first_name,
                last_name=last_name,
                phone="+966511111111",
                nationality="SA",
                id_type="national_id",
                id_number=uuid4().hex[:10],
            )
        )

    async def booking(
        self,
        hotel: Hotel,
        room: Room,
        guest: Guest,
        check_out: datetime,
        total: str = "100.00",
        paid: str = "0.00",
        status: str = "confirmed",
        payment_status: str = "pending",
        nights: int = 1,
        payments: list[tuple[str, str]] | None = None,
    ) -> Booking:
        """A booking checking out at ``check_out``; ``payments`` are (amount, method) pairs."""
        booking = Booking(
            hotel_id=hotel.id,
            booking_number=f"BK{uuid4().hex[:8].upper()}",
            room_id=room.id,
            guest_id=guest.id,
            check_in_date=check_out - timedelta(days=nights),
            check_out_date=check_out,
            status=status,
            total_amount=Decimal(total),
            paid_amount=Decimal(paid),
            payment_status=payment_status,
        )
        booking.payments = [
            BookingPayment(
                hotel_id=hotel.id,
                amount=Decimal(amount),
                method=method,
                paid_at=check_out - timedelta(hours=index + 1),
            )
            for index, (amount, method) in enumerate(payments or [])
        ]
        return await self._save(booking)

    def token(self, user: User, **kwargs: Any) -> str:
        return create_access_token(
            user.id, user.role, user.hotel_id, settings=self.settings, **kwargs
        )

    def headers(self, user: User, **extra: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token(user)}", **extra}


@pytest.fixture
def seed(session_factory: async_sessionmaker[AsyncSession], test_settings: Settings) -> Seeder:
    """Helpers for inserting hotels, operators, rooms and guests."""
    return Seeder(session_factory, test_settings)


@pytest_asyncio.fixture
async def super_admin(seed: Seeder) -> User:
    return await seed.user(Role.SUPER_ADMIN, email="owner@platform.example.com", is_verified=True)


@pytest_asyncio.fixture
async def sub_admin(seed: Seeder) -> User:
    return await seed.user(Role.SUB_SUPER_ADMIN, email="delegate@platform.example.com")
