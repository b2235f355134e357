"""Public license validation API route, called by the licensed product."""
import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from license_server.api.utils.dependencies import get_license_service
from license_server.services.license_service import LicenseService
from license_server.schemas.license import LicenseValidateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/license", tags=["License Validation"])


def _failure(status: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=403, content={"status": status, "message": message})


@router.post("/validate")
async def validate_license(
    request: Request,
    service: LicenseService = Depends(get_license_service),
):
    """
    Validate a license key for an account/hardware pair.

    No authentication. Answers 200 ``{"status": "ok", "expiry": "YYYY-MM-DD"}``
    for a usable license and 403 ``{"status": "invalid" | "expired",
    "message": ...}`` otherwise, including for bodies that are not a JSON
    object. Nothing else about the record is exposed.
    """
    try:
        body = json.loads(await request.body() or b"{}")
    except ValueError:
        body = None
    if not isinstance(body, dict):
        logger.info("License validation with malformed body")
        return _failure("invalid", "License not found")

    data = LicenseValidateRequest.model_validate(body)
    result = await service.validate_license(
        license_key=data.license_key,
        account_id=data.account_id,
        hardware_id=data.hardware_id,
    )

    if result["status"] == "ok":
        return JSONResponse(
            status_code=200,
            content={"status": "ok", "expiry": result["expiry"].isoformat()},
        )

    return _failure(result["status"], result["message"])
