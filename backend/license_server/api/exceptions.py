"""Exception handlers rendering every failure as ``{error, message}`` JSON."""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from license_server.config import get_settings
from license_server.exceptions import LicenseServerError, StoreError, ValidationError

logger = logging.getLogger(__name__)

# Labels for framework-level HTTP errors (unknown route, wrong method, ...)
_HTTP_ERROR_LABELS = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    405: "Method not allowed",
}


def error_response(exc: LicenseServerError) -> JSONResponse:
    """Build the JSON response for a LicenseServerError."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _describe_validation_errors(exc: RequestValidationError) -> str:
    """
    Turn pydantic errors into one readable sentence.

    Examples:
        "email: value is not a valid email address"
        "expiryDate: Input should be a valid date or datetime"
    """
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query")]
        field = ".".join(loc)
        msg = err.get("msg", "Invalid value")
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts) or "Invalid request"


async def license_server_error_handler(request: Request, exc: LicenseServerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(exc)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(ValidationError(_describe_validation_errors(exc)))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    label = _HTTP_ERROR_LABELS.get(exc.status_code, "Error")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": label, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    message = str(exc) if get_settings().DEBUG else "Database operation failed"
    return error_response(StoreError(message))


async def unexpected_error_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    if get_settings().DEBUG:
        # In debug mode, show the error details
        return JSONResponse(
            status_code=500,
            content={
                "error": "Server error",
                "message": str(exc),
                "traceback": traceback.format_exc(),
            },
        )
    return JSONResponse(
        status_code=500,
        content={"error": "Server error", "message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers to the application."""
    app.add_exception_handler(LicenseServerError, license_server_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
