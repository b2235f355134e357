"""Service layer for business logic."""
from license_server.services.auth_service import AuthService
from license_server.services.license_service import LicenseService

__all__ = [
    "AuthService",
    "LicenseService",
]
