"""Admin license management API routes.

All endpoints require an admin session (cookie ``admin_session`` or
``Authorization: Bearer``).
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from license_server.api.utils.dependencies import get_license_service
from license_server.dependencies import get_current_admin
from license_server.exceptions import ValidationError
from license_server.services.license_service import LicenseService
from license_server.schemas.license import (
    LicenseApprove,
    LicenseCreate,
    LicenseDeleteBody,
    LicenseListResponse,
    LicenseMutationResponse,
    LicenseReject,
    LicenseResponse,
    LicenseStats,
    LicenseStatsResponse,
    LicenseUpdate,
    PendingLicensesResponse,
    SuccessResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin/licenses",
    tags=["Admin Licenses"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/list", response_model=LicenseListResponse)
async def list_licenses(
    service: LicenseService = Depends(get_license_service),
):
    """List every license, newest first."""
    licenses = await service.list_licenses()
    return LicenseListResponse(
        data=[LicenseResponse.model_validate(lic) for lic in licenses]
    )


@router.get("/stats", response_model=LicenseStatsResponse)
async def license_stats(
    service: LicenseService = Depends(get_license_service),
):
    """Summary counts for the dashboard cards."""
    stats = await service.get_stats()
    return LicenseStatsResponse(stats=LicenseStats(**stats))


@router.post("/create", response_model=LicenseMutationResponse, status_code=201)
async def create_license(
    data: LicenseCreate,
    service: LicenseService = Depends(get_license_service),
):
    """Create a license directly."""
    record = await service.create_license(
        license_key=data.license_key,
        account_id=data.account_id,
        account_server=data.account_server,
        hardware_id=data.hardware_id,
        ea_name=data.ea_name,
        expiry_date=data.expiry_date,
        status=data.status,
    )
    return LicenseMutationResponse(
        message="License created successfully",
        data=LicenseResponse.model_validate(record),
    )


@router.put("/update", response_model=LicenseMutationResponse)
async def update_license(
    data: LicenseUpdate,
    service: LicenseService = Depends(get_license_service),
):
    """Update an existing license in place."""
    record = await service.update_license(
        license_key=data.license_key,
        account_id=data.account_id,
        hardware_id=data.hardware_id,
        expiry_date=data.expiry_date,
        status=data.status,
        account_server=data.account_server,
        ea_name=data.ea_name,
    )
    return LicenseMutationResponse(
        message="License updated successfully",
        data=LicenseResponse.model_validate(record),
    )


@router.delete("/delete", response_model=SuccessResponse)
async def delete_license(
    request: Request,
    license_key: Optional[str] = Query(None, alias="licenseKey"),
    service: LicenseService = Depends(get_license_service),
):
    """Delete a license. The key comes from the query string or the JSON body."""
    if not license_key:
        raw = await request.body()
        if raw:
            try:
                body = json.loads(raw)
            except ValueError:
                raise ValidationError("Request body must be valid JSON")
            if isinstance(body, dict):
                license_key = LicenseDeleteBody.model_validate(body).license_key

    await service.delete_license(license_key)
    return SuccessResponse(message="License deleted successfully")


@router.get("/pending", response_model=PendingLicensesResponse)
async def list_pending(
    service: LicenseService = Depends(get_license_service),
):
    """List client requests awaiting review."""
    pending = await service.list_pending()
    return PendingLicensesResponse(
        pendingRequests=[LicenseResponse.model_validate(lic) for lic in pending],
        count=len(pending),
    )


@router.post("/approve", response_model=LicenseMutationResponse)
async def approve_license(
    data: LicenseApprove,
    service: LicenseService = Depends(get_license_service),
):
    """Approve a pending request. Conflicting requests are auto-rejected (409)."""
    record = await service.approve_license(data.license_key, data.expiry_date)
    return LicenseMutationResponse(
        message="License approved successfully",
        data=LicenseResponse.model_validate(record),
    )


@router.post("/reject", response_model=LicenseMutationResponse)
async def reject_license(
    data: LicenseReject,
    service: LicenseService = Depends(get_license_service),
):
    """Reject a pending request."""
    record = await service.reject_license(data.license_key)
    return LicenseMutationResponse(
        message="License request rejected",
        data=LicenseResponse.model_validate(record),
    )
