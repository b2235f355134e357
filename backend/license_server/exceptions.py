"""Error taxonomy shared by services, dependencies and routes.

Every error carries the HTTP status it maps to, a short ``error`` label and a
human readable ``message``. Anything in ``extra`` is merged into the JSON body
by the API exception handlers.
"""
from typing import Any, Optional


class LicenseServerError(Exception):
    """Base class for all expected failures."""

    status_code: int = 500
    error: str = "Server error"

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"error": self.error, "message": self.message}
        body.update(self.extra)
        return body


class ValidationError(LicenseServerError):
    status_code = 400
    error = "Validation error"


class Unauthorized(LicenseServerError):
    status_code = 401
    error = "Unauthorized"

    def __init__(self, message: str = "Please login to access this resource", **extra: Any):
        super().__init__(message, **extra)


class InvalidCredentials(LicenseServerError):
    status_code = 401
    error = "Invalid credentials"


class AccountInactive(LicenseServerError):
    status_code = 403
    error = "Account inactive"


class NotFound(LicenseServerError):
    status_code = 404
    error = "Not found"


class DuplicateKey(LicenseServerError):
    status_code = 409
    error = "Duplicate license key"

    def __init__(self, license_key: str):
        super().__init__(f'License key "{license_key}" already exists')
        self.license_key = license_key


class DuplicateBinding(LicenseServerError):
    """Another live (active or pending) license holds the same account/hardware pair."""

    status_code = 409
    error = "Duplicate license"

    def __init__(
        self,
        account_id: str,
        hardware_id: str,
        existing_key: Optional[str] = None,
        existing_status: Optional[str] = None,
    ):
        message = (
            f'A license with Account ID "{account_id}" and Hardware ID "{hardware_id}" '
            f"already exists"
        )
        if existing_status:
            message += f" and is {existing_status}"
        if existing_key:
            message += f". License Key: {existing_key}"
        extra = {}
        if existing_key:
            extra["existingLicenseKey"] = existing_key
        if existing_status:
            extra["existingStatus"] = existing_status
        super().__init__(message, **extra)
        self.existing_key = existing_key
        self.existing_status = existing_status


class DuplicatePending(LicenseServerError):
    status_code = 409
    error = "Duplicate request"

    def __init__(self, account_id: str, hardware_id: str, existing_key: str):
        super().__init__(
            f'A pending license request with Account ID "{account_id}" and Hardware ID '
            f'"{hardware_id}" already exists. Please wait for admin approval.',
            existingLicenseKey=existing_key,
        )
        self.existing_key = existing_key


class AutoRejectedDuplicate(LicenseServerError):
    """Approval refused; the pending request was rejected in its place."""

    status_code = 409
    error = "Duplicate license"

    def __init__(
        self,
        license_key: str,
        account_id: str,
        hardware_id: str,
        existing_key: str,
        existing_status: str,
    ):
        super().__init__(
            f'Cannot approve: A license with Account ID "{account_id}" and Hardware ID '
            f'"{hardware_id}" already exists. Status: {existing_status}. '
            f"License Key: {existing_key}",
            existingLicenseKey=existing_key,
            existingStatus=existing_status,
            autoRejected=True,
        )
        self.license_key = license_key
        self.existing_key = existing_key
        self.existing_status = existing_status


class DuplicateAccount(LicenseServerError):
    status_code = 409
    error = "Email already exists"

    def __init__(self, message: str = "An account with this email already exists. Please login instead."):
        super().__init__(message)


class ServerConfigurationError(LicenseServerError):
    status_code = 500
    error = "Server configuration error"


class StoreError(LicenseServerError):
    status_code = 500
    error = "Database error"
