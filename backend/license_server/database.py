"""Database configuration and session management."""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from license_server.config import get_settings, Settings
from license_server.exceptions import ServerConfigurationError

settings = get_settings()


def create_engine_from_settings(settings: Settings):
    """Build the async engine for the configured DATABASE_URL."""
    if settings.is_postgres:
        # pgbouncer-compatible settings: no prepared statement cache, no JIT
        return create_async_engine(
            settings.async_database_url,
            echo=False,
            pool_size=20,
            max_overflow=50,
            pool_pre_ping=True,
            connect_args={
                "server_settings": {
                    "jit": "off",
                },
                "prepared_statement_cache_size": 0,
            },
        )
    return create_async_engine(settings.async_database_url, echo=False)


# No engine at all when the store is not configured; get_db reports it per request
engine = create_engine_from_settings(settings) if settings.DATABASE_URL else None

AsyncSessionLocal = (
    async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    if engine is not None
    else None
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database session."""
    if AsyncSessionLocal is None:
        raise ServerConfigurationError("Database credentials not configured")
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
