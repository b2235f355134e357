"""License Pydantic schemas.

Request bodies keep the camelCase field names the dashboards send
(``licenseKey``, ``accountId``, ...); records are returned with their
snake_case column names.
"""
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from license_server.models.license import LicenseStatus


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class _LicenseRequestBase(BaseModel):
    model_config = {"populate_by_name": True}

    @field_validator("*", mode="before")
    @classmethod
    def _normalise(cls, value: Any) -> Any:
        # Numeric account ids are compared as strings
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        return _blank_to_none(value)


# ── Admin requests ──────────────────────────────────────────

class LicenseCreate(_LicenseRequestBase):
    license_key: Optional[str] = Field(None, alias="licenseKey", max_length=64)
    account_id: Optional[str] = Field(None, alias="accountId", max_length=255)
    account_server: Optional[str] = Field(None, alias="accountServer", max_length=255)
    hardware_id: Optional[str] = Field(None, alias="hardwareId", max_length=255)
    ea_name: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[date] = Field(None, alias="expiryDate")
    status: Optional[LicenseStatus] = None


class LicenseUpdate(_LicenseRequestBase):
    license_key: Optional[str] = Field(None, alias="licenseKey", max_length=64)
    account_id: Optional[str] = Field(None, alias="accountId", max_length=255)
    account_server: Optional[str] = Field(None, alias="accountServer", max_length=255)
    hardware_id: Optional[str] = Field(None, alias="hardwareId", max_length=255)
    ea_name: Optional[str] = Field(None, max_length=255)
    expiry_date: Optional[date] = Field(None, alias="expiryDate")
    status: Optional[LicenseStatus] = None


class LicenseDeleteBody(_LicenseRequestBase):
    license_key: Optional[str] = Field(None, alias="licenseKey")


class LicenseApprove(_LicenseRequestBase):
    license_key: Optional[str] = Field(None, alias="licenseKey")
    expiry_date: Optional[date] = Field(None, alias="expiryDate")


class LicenseReject(_LicenseRequestBase):
    license_key: Optional[str] = Field(None, alias="licenseKey")


# ── Client requests ─────────────────────────────────────────

class LicenseRequestCreate(_LicenseRequestBase):
    account_id: Optional[str] = Field(None, alias="accountId", max_length=255)
    account_server: Optional[str] = Field(None, alias="accountServer", max_length=255)
    ea_name: Optional[str] = Field(None, max_length=255)
    hardware_id: Optional[str] = Field(None, alias="hardwareId", max_length=255)


# ── Product-facing validation ───────────────────────────────

class LicenseValidateRequest(BaseModel):
    """
    Body sent by the licensed product.

    Values are matched exactly as sent, so no whitespace is stripped. JSON
    numbers are compared by their decimal text (``123`` and ``123.0`` both
    become ``"123"``); anything that is neither a string nor a number counts
    as missing.
    """
    model_config = {"populate_by_name": True}

    license_key: Optional[str] = Field(None, alias="licenseKey")
    account_id: Optional[str] = Field(None, alias="accountId")
    hardware_id: Optional[str] = Field(None, alias="hardwareId")

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Optional[str]:
        if isinstance(value, bool):
            return None
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, str):
            return value or None
        return None


# ── Responses ───────────────────────────────────────────────

class LicenseResponse(BaseModel):
    id: int
    license_key: str
    account_id: str
    account_server: Optional[str] = None
    hardware_id: str
    ea_name: Optional[str] = None
    expiry_date: Optional[date] = None
    status: str
    requested_by: Optional[str] = None
    requested_email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LicenseListResponse(BaseModel):
    success: bool = True
    data: list[LicenseResponse]


class LicenseMutationResponse(BaseModel):
    success: bool = True
    message: str
    data: LicenseResponse


class PendingLicensesResponse(BaseModel):
    success: bool = True
    pendingRequests: list[LicenseResponse]
    count: int


class LicenseRequestResponse(BaseModel):
    success: bool = True
    message: str
    licenseKey: str
    data: LicenseResponse


class ClientLicensesResponse(BaseModel):
    success: bool = True
    licenses: list[LicenseResponse]


class LicenseStats(BaseModel):
    total: int
    active: int
    expired: int  # Active but past expiry
    pending: int
    rejected: int
    inactive: int


class LicenseStatsResponse(BaseModel):
    success: bool = True
    stats: LicenseStats


class SuccessResponse(BaseModel):
    success: bool = True
    message: str
