"""
Pytest configuration and fixtures for License Server tests.

This module provides shared fixtures for database, authentication, test client,
and common test data.
"""

import sys
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Add parent directory to path to import license_server modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from license_server.main import app
from license_server.database import Base, get_db
from license_server.models import Client, ClientSession, License
from license_server.config import Settings, get_settings
from license_server.utils.security import create_admin_session_token, hash_password


ADMIN_PASSWORD = "admin-test-password"
CLIENT_PASSWORD = "client123"


# ============================================================================
# Test Configuration
# ============================================================================

@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Provide test-specific settings.

    Uses in-memory SQLite database for tests.
    """
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        SECRET_KEY="test-secret-key-for-testing-only",
        DEBUG=True,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        ADMIN_PASSWORD_HASH="",
        SESSION_EXPIRY_HOURS=24,
        LICENSE_KEY_PREFIX="ALGO",
        MIN_PASSWORD_LENGTH=6,
        SCHEDULER_ENABLED=False,
    )


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def async_engine(test_settings: Settings):
    """
    Create async database engine for tests.

    Uses in-memory SQLite with StaticPool to ensure all connections
    share the same in-memory database.
    """
    engine = create_async_engine(
        test_settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(async_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide database session for tests.

    Creates a new session for each test and rolls back after the test.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(async_engine, db_session: AsyncSession, test_settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide HTTP test client.

    Overrides the database session dependency to use the test database.
    The same db_session instance is reused across all dependency injections,
    so data created by fixtures is visible to the routes.
    """
    async def override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    def override_get_settings():
        return test_settings

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = override_get_settings

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Authentication Fixtures
# ============================================================================

@pytest.fixture
def admin_token(test_settings: Settings) -> str:
    """
    Signed admin session token, as issued by /api/admin/auth/login.
    """
    return create_admin_session_token(test_settings.SECRET_KEY)


@pytest.fixture
def admin_headers(admin_token: str) -> dict:
    """
    Authorization header for admin endpoints.
    """
    return {"Authorization": f"Bearer {admin_token}"}


@pytest_asyncio.fixture
async def client_account(db_session: AsyncSession) -> Client:
    """
    Create and return an active client account for testing.
    """
    account = Client(
        email="client@test.com",
        name="Test Client",
        status="active",
        password_hash=hash_password(CLIENT_PASSWORD),
    )
    db_session.add(account)
    await db_session.commit()
    await db_session.refresh(account)
    return account


@pytest_asyncio.fixture
async def inactive_client_account(db_session: AsyncSession) -> Client:
    """
    Create and return a suspended client account for testing.
    """
    account = Client(
        email="suspended@test.com",
        name="Suspended Client",
        status="suspended",
        password_hash=hash_password(CLIENT_PASSWORD),
    )
    db_session.add(account)
    await db_session.commit()
    await db_session.refresh(account)
    return account


@pytest_asyncio.fixture
async def client_session_token(db_session: AsyncSession, client_account: Client) -> str:
    """
    Create a live client session directly in the database and return its token.
    """
    token = "c" * 64
    db_session.add(ClientSession(
        session_token=token,
        client_id=client_account.id,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    ))
    await db_session.commit()
    return token


@pytest.fixture
def client_headers(client_session_token: str) -> dict:
    """
    Authorization header for client portal endpoints.
    """
    return {"Authorization": f"Bearer {client_session_token}"}


# ============================================================================
# License Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def active_license(db_session: AsyncSession) -> License:
    """
    Create and return an active license ALGO-AAA for (acct1, hw1).
    """
    record = License(
        license_key="ALGO-AAA",
        account_id="acct1",
        account_server="Broker-Live",
        hardware_id="hw1",
        ea_name="Trend EA",
        expiry_date=date(2099, 1, 1),
        status="active",
    )
    db_session.add(record)
    await db_session.commit()
    await db_session.refresh(record)
    return record


@pytest_asyncio.fixture
async def pending_license(db_session: AsyncSession, client_account: Client) -> License:
    """
    Create and return a pending client request for (acct2, hw2).
    """
    record = License(
        license_key="ALGO-PENDING",
        account_id="acct2",
        account_server="Broker-Demo",
        hardware_id="hw2",
        ea_name="Grid EA",
        expiry_date=None,
        status="pending",
        requested_by=str(client_account.id),
        requested_email=client_account.email,
    )
    db_session.add(record)
    await db_session.commit()
    await db_session.refresh(record)
    return record


# ============================================================================
# Helper Functions
# ============================================================================

@pytest.fixture
def sample_license_data() -> dict:
    """
    Provide a create request body, as sent by the admin dashboard.
    """
    return {
        "licenseKey": "ALGO-NEW",
        "accountId": "12345",
        "accountServer": "Broker-Live",
        "hardwareId": "HW-NEW",
        "ea_name": "Scalper EA",
        "expiryDate": "2099-12-31",
    }


# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """
    Configure pytest markers.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
