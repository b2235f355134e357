"""Client portal license API routes."""
import logging

from fastapi import APIRouter, Depends

from license_server.api.utils.dependencies import get_license_service
from license_server.dependencies import ClientContext, get_current_client
from license_server.services.license_service import LicenseService
from license_server.schemas.license import (
    ClientLicensesResponse,
    LicenseRequestCreate,
    LicenseRequestResponse,
    LicenseResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/client/license", tags=["Client Licenses"])


@router.post("/request", response_model=LicenseRequestResponse, status_code=201)
async def request_license(
    data: LicenseRequestCreate,
    current: ClientContext = Depends(get_current_client),
    service: LicenseService = Depends(get_license_service),
):
    """
    Submit a license request for admin review.

    The server generates the license key; the record starts out pending
    with no expiry date.
    """
    record = await service.request_license(
        account_id=data.account_id,
        account_server=data.account_server,
        ea_name=data.ea_name,
        hardware_id=data.hardware_id,
        client_id=current.client_id,
        client_email=current.email,
    )
    return LicenseRequestResponse(
        message="License request submitted successfully. Waiting for admin approval.",
        licenseKey=record.license_key,
        data=LicenseResponse.model_validate(record),
    )


@router.get("/my-licenses", response_model=ClientLicensesResponse)
async def my_licenses(
    current: ClientContext = Depends(get_current_client),
    service: LicenseService = Depends(get_license_service),
):
    """List every license requested by the current client, newest first."""
    licenses = await service.list_for_requester(current.client_id, current.email)
    return ClientLicensesResponse(
        licenses=[LicenseResponse.model_validate(lic) for lic in licenses]
    )
