"""Common dependency injection utilities."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from license_server.config import Settings, get_settings
from license_server.database import get_db
from license_server.services.license_service import LicenseService


async def get_license_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> LicenseService:
    """
    Get LicenseService instance.

    Args:
        db: Database session from dependency injection
        settings: Application settings (key prefix for generated keys)

    Returns:
        Initialized LicenseService
    """
    return LicenseService(db, key_prefix=settings.LICENSE_KEY_PREFIX)
