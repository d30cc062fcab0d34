import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, timedelta
from uuid import UUID, uuid4

# Settings are read at import time; tests never touch the configured database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./clinicops_test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ["CACHE_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from clinicops.core.security import issue_operator_token
from clinicops.database import get_db
from clinicops.main import app
from clinicops.models import doctors, metadata
from clinicops.schemas.appointments import AppointmentCreate, AppointmentStatus
from clinicops.services.appointment_service import AppointmentService

Advance = Callable[..., Awaitable[None]]


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a throwaway SQLite database per test."""
    # NullPool so every session gets its own connection, like separate requests
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'clinicops.db'}",
        poolclass=NullPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def operator_id() -> UUID:
    return uuid4()


@pytest.fixture
def auth_headers(operator_id: UUID) -> dict:
    """Create authentication headers for testing protected endpoints."""
    token = issue_operator_token(operator_id, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


async def _insert_doctor(db: AsyncSession, full_name: str, is_active: bool = True) -> UUID:
    doctor_id = uuid4()
    await db.execute(
        insert(doctors).values(
            id=doctor_id,
            full_name=full_name,
            specialization="General Practice",
            is_active=is_active,
        )
    )
    await db.commit()
    return doctor_id


@pytest_asyncio.fixture
async def doctor(db_session: AsyncSession) -> UUID:
    """Insert an active doctor and return its ID."""
    return await _insert_doctor(db_session, "Dr. Jane Okafor")


@pytest_asyncio.fixture
async def second_doctor(db_session: AsyncSession) -> UUID:
    return await _insert_doctor(db_session, "Dr. Tomas Varga")


@pytest_asyncio.fixture
async def inactive_doctor(db_session: AsyncSession) -> UUID:
    return await _insert_doctor(db_session, "Dr. Retired", is_active=False)


@pytest.fixture
def service_id() -> UUID:
    return uuid4()


@pytest.fixture
def appointment_data(service_id: UUID) -> AppointmentCreate:
    """Appointment creation payload for a single clinic service and day."""
    return AppointmentCreate(
        patient_id=uuid4(),
        service_id=service_id,
        appointment_date=date(2026, 10, 19),
    )


@pytest.fixture
def service(db_session: AsyncSession) -> AppointmentService:
    return AppointmentService(db_session, enforce_sequential_consultation=True)


@pytest.fixture
def advance(service: AppointmentService, operator_id: UUID) -> Advance:
    """Walk an appointment forward through the given statuses."""

    async def _advance(appointment_id: UUID, *statuses: AppointmentStatus) -> None:
        for target in statuses:
            await service.apply_transition(appointment_id, target, actor_id=operator_id)

    return _advance
