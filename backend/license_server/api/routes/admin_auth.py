"""Admin authentication API routes."""
import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Response

from license_server.api.utils.request import to_epoch_millis
from license_server.config import Settings, get_settings
from license_server.dependencies import ADMIN_SESSION_COOKIE, get_current_admin
from license_server.exceptions import InvalidCredentials, ServerConfigurationError
from license_server.schemas.auth import (
    AdminLoginRequest,
    AdminLoginResponse,
    LogoutResponse,
    SessionStatusResponse,
)
from license_server.utils.security import (
    create_admin_session_token,
    resolve_secret_key,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/auth", tags=["Admin Authentication"])


def check_admin_password(password: str, settings: Settings) -> bool:
    """
    Compare a submitted password with the configured admin credential.

    ADMIN_PASSWORD_HASH (bcrypt) takes precedence over ADMIN_PASSWORD.

    Raises:
        ServerConfigurationError: If no admin credential is configured
    """
    if settings.ADMIN_PASSWORD_HASH:
        return verify_password(password, settings.ADMIN_PASSWORD_HASH)
    if settings.ADMIN_PASSWORD:
        return secrets.compare_digest(
            password.encode("utf-8"), settings.ADMIN_PASSWORD.encode("utf-8")
        )
    logger.error("Admin login attempted but no admin password is configured")
    raise ServerConfigurationError("Admin password not configured")


@router.post("/login", response_model=AdminLoginResponse)
async def admin_login(
    login_data: AdminLoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
):
    """
    Authenticate the administrator and issue a signed session token.

    The token is returned in the body and set as the ``admin_session`` cookie.
    """
    if not check_admin_password(login_data.password, settings):
        logger.info("Rejected admin login attempt")
        raise InvalidCredentials("Incorrect password")

    session_token = create_admin_session_token(resolve_secret_key(settings.SECRET_KEY))
    expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.SESSION_EXPIRY_HOURS)

    response.set_cookie(
        key=ADMIN_SESSION_COOKIE,
        value=session_token,
        httponly=True,
        secure=not settings.DEBUG,  # HTTPS only in production
        samesite="strict",
        max_age=settings.SESSION_EXPIRY_HOURS * 3600,
        path="/",
    )

    logger.info("Admin logged in")
    return AdminLoginResponse(
        message="Login successful",
        sessionToken=session_token,
        expiresAt=to_epoch_millis(expires_at),
    )


@router.get("/verify", response_model=SessionStatusResponse)
async def admin_verify(_: str = Depends(get_current_admin)):
    """Confirm that the caller holds a valid admin session."""
    return SessionStatusResponse(message="Session is valid")


@router.post("/logout", response_model=LogoutResponse)
async def admin_logout(response: Response):
    """
    Clear the admin session cookie.

    Admin tokens are stateless, so the token itself stays valid until it
    expires; the browser simply forgets it.
    """
    response.delete_cookie(key=ADMIN_SESSION_COOKIE, path="/")
    return LogoutResponse(message="Logout successful")
