"""
Fixtures for scheduling integration tests.

Each test gets its own SQLite database file served through aiosqlite, with
the schema created from the SQLAlchemy models.
"""

import asyncio
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinicbook.config.settings import Settings
from clinicbook.database.async_db import create_async_database_engine, get_async_db
from clinicbook.database.base import Base
from clinicbook.domains.scheduling.container import SchedulingContainer, get_scheduling_container
from clinicbook.domains.scheduling.infrastructure.notifications import RecordingNotificationGateway
from clinicbook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import PatientContactModel
from clinicbook.domains.scheduling.infrastructure.repositories import SQLAlchemyProviderScheduleRepository
from clinicbook.main import create_app
from tests.utils import PATIENT_ID, build_weekday_schedule


def _session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def _seed(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with _session_factory(engine)() as session:
        await SQLAlchemyProviderScheduleRepository(session).save(build_weekday_schedule())
        session.add(PatientContactModel(patient_id=PATIENT_ID, name="Ana Torres", email="ana@example.com"))
        await session.commit()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(ENVIRONMENT="test", LOG_FORMAT="plain", EMAIL_API_KEY=None)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def async_engine(tmp_path):
    """Engine on a fresh SQLite file with the seeded weekday provider."""
    engine = create_async_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'scheduling.db'}")
    await _seed(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    async with _session_factory(async_engine)() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def container(test_settings) -> SchedulingContainer:
    return SchedulingContainer(test_settings, gateway=RecordingNotificationGateway())


# ============================================================================
# API FIXTURES
# ============================================================================


@pytest.fixture
def api_session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    """Session factory for API tests; seeded outside the client's event loop."""
    engine = create_async_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    asyncio.run(_seed(engine))
    yield _session_factory(engine)
    asyncio.run(engine.dispose())


@pytest.fixture
def test_client(api_session_factory, test_settings, container):
    """TestClient with the database and container dependencies overridden."""
    app = create_app(test_settings)

    async def override_db() -> AsyncGenerator[AsyncSession, None]:
        async with api_session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_db
    app.dependency_overrides[get_scheduling_container] = lambda: container

    yield TestClient(app)
    app.dependency_overrides.clear()
