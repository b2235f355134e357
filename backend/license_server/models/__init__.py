"""SQLAlchemy models."""
from license_server.models.license import License, LicenseStatus, LIVE_STATUSES
from license_server.models.client import Client, ClientSession

__all__ = [
    "License",
    "LicenseStatus",
    "LIVE_STATUSES",
    "Client",
    "ClientSession",
]
